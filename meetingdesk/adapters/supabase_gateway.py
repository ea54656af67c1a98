"""
Hosted database client speaking the PostgREST dialect used by Supabase.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..domain.exceptions import DataAccessError, DuplicateRecordError
from .gateway import Filters, Row, is_membership

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class SupabaseGateway:
    """
    Client for the REST interface of a Supabase project.

    Every table is exposed at ``{url}/rest/v1/{table}``; filters and ordering
    travel as query parameters, rows as JSON bodies.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Project URL, e.g. https://abc.supabase.co
            api_key: Anon or service role key of the project
            timeout: Seconds to wait for each HTTP call
            session: Optional preconfigured requests session
        """
        self.rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        params = self._filter_params(filters)
        params["select"] = "*"
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"

        return self._request("GET", table, params=params) or []

    def insert(self, table: str, row: Row) -> Row:
        rows = self._request("POST", table, json=row) or []
        if not rows:
            raise DataAccessError(f"Insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, filters: Filters, changes: Row) -> List[Row]:
        if not filters:
            raise ValueError("Refusing to update without filters")
        return self._request("PATCH", table, params=self._filter_params(filters), json=changes) or []

    def delete(self, table: str, filters: Filters) -> None:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        self._request("DELETE", table, params=self._filter_params(filters))

    def ping(self) -> None:
        """Check that the project answers with the configured key."""
        self._send("GET", f"{self.rest_url}/", label="ping")

    @staticmethod
    def _filter_params(filters: Optional[Filters]) -> Dict[str, str]:
        """
        Translate filters into PostgREST query parameters.

        {"event_id": "e1", "id": ["a", "b"]} -> {"event_id": "eq.e1", "id": "in.(a,b)"}
        """
        params: Dict[str, str] = {}
        for column, value in (filters or {}).items():
            if is_membership(value):
                params[column] = "in.(" + ",".join(_literal(item) for item in value) + ")"
            else:
                params[column] = f"eq.{_literal(value)}"
        return params

    def _request(self, method: str, table: str, **kwargs: Any) -> Any:
        return self._send(method, f"{self.rest_url}/{table}", label=table, **kwargs)

    def _send(self, method: str, url: str, label: str, **kwargs: Any) -> Any:
        logger.debug("%s %s %s", method, url, kwargs.get("params", {}))

        try:
            response = self.session.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            raise DataAccessError(f"Request to {label} failed: {e}") from e

        if not response.ok:
            self._raise_for_error(response, method, label)

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _raise_for_error(response: requests.Response, method: str, label: str) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or response.text or response.reason
        if body.get("code") == UNIQUE_VIOLATION:
            raise DuplicateRecordError(f"{label}: {message}")

        raise DataAccessError(f"{method} {label} failed ({response.status_code}): {message}")


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
