"""
In-memory database for tests and offline use of the CLI.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

import pendulum

from ..domain.exceptions import DuplicateRecordError
from .gateway import (
    ENTREPRENEURS,
    EVENT_ENTREPRENEURS,
    EVENTS,
    MEETING_BOOKINGS,
    PARTICIPANTS,
    TABLES,
    Filters,
    Row,
    is_membership,
)

logger = logging.getLogger(__name__)

# Mirrors the constraints declared in sql/schema.sql
UNIQUE_KEYS: Dict[str, Sequence[Tuple[str, ...]]] = {
    EVENT_ENTREPRENEURS: [("event_id", "entrepreneur_id")],
    MEETING_BOOKINGS: [("event_id", "entrepreneur_id", "time_slot")],
}

CASCADES: Dict[str, Sequence[Tuple[str, str]]] = {
    EVENTS: [(EVENT_ENTREPRENEURS, "event_id"), (MEETING_BOOKINGS, "event_id")],
    ENTREPRENEURS: [(EVENT_ENTREPRENEURS, "entrepreneur_id"), (MEETING_BOOKINGS, "entrepreneur_id")],
    PARTICIPANTS: [(MEETING_BOOKINGS, "participant_id")],
}

TIMESTAMPED = {ENTREPRENEURS, PARTICIPANTS, EVENTS}

DEFAULT_MOCK_DATA = Path(__file__).parent / "mock_data.json"


class InMemoryGateway:
    """
    Gateway that keeps all tables in process memory.

    Behaves like the hosted database where the application can observe it:
    ids and timestamps are assigned on insert, unique constraints reject
    duplicates and deletes cascade to dependent rows.
    """

    def __init__(self, seed: Optional[Mapping[str, List[Row]]] = None):
        self._tables: Dict[str, List[Row]] = {table: [] for table in TABLES}
        for table, rows in (seed or {}).items():
            if table not in self._tables:
                logger.warning("Ignoring seed data for unknown table %s", table)
                continue
            self._tables[table] = [dict(row) for row in rows]

    @classmethod
    def from_json(cls, data_file: Path) -> "InMemoryGateway":
        """
        Load seed rows from a JSON file mapping table name to a list of rows.

        A missing file yields an empty database.
        """
        if not data_file.exists():
            logger.warning("Mock data file %s not found, starting empty", data_file)
            return cls()

        with open(data_file, "r", encoding="utf-8") as f:
            return cls(seed=json.load(f))

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        rows = [dict(row) for row in self._rows(table) if _matches(row, filters)]
        if order:
            rows.sort(key=lambda row: (row.get(order) is None, row.get(order) or ""), reverse=descending)
        return rows

    def insert(self, table: str, row: Row) -> Row:
        stored = dict(row)
        now = _now()
        stored.setdefault("id", str(uuid4()))
        stored.setdefault("created_at", now)
        if table in TIMESTAMPED:
            stored.setdefault("updated_at", now)

        self._check_unique(table, stored)
        self._rows(table).append(stored)
        return dict(stored)

    def update(self, table: str, filters: Filters, changes: Row) -> List[Row]:
        updated: List[Row] = []
        for row in self._rows(table):
            if not _matches(row, filters):
                continue
            candidate = {**row, **changes}
            self._check_unique(table, candidate, ignore_id=row["id"])
            row.update(changes)
            updated.append(dict(row))
        return updated

    def delete(self, table: str, filters: Filters) -> None:
        rows = self._rows(table)
        doomed = [row for row in rows if _matches(row, filters)]
        self._tables[table] = [row for row in rows if not _matches(row, filters)]

        for child_table, column in CASCADES.get(table, []):
            ids = [row["id"] for row in doomed]
            if ids:
                self.delete(child_table, {column: ids})

    def ping(self) -> None:
        return None

    def _rows(self, table: str) -> List[Row]:
        if table not in self._tables:
            raise KeyError(f"Unknown table: {table}")
        return self._tables[table]

    def _check_unique(self, table: str, row: Row, ignore_id: Any = None) -> None:
        for columns in UNIQUE_KEYS.get(table, []):
            key = tuple(_normalize(row.get(column)) for column in columns)
            for existing in self._tables[table]:
                if ignore_id is not None and existing["id"] == ignore_id:
                    continue
                if tuple(_normalize(existing.get(column)) for column in columns) == key:
                    raise DuplicateRecordError(
                        f"{table}: duplicate key value violates unique constraint on "
                        f"({', '.join(columns)})"
                    )


def _normalize(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    return str(value)


def _matches(row: Row, filters: Optional[Filters]) -> bool:
    for column, expected in (filters or {}).items():
        actual = _normalize(row.get(column))
        if is_membership(expected):
            if actual not in {_normalize(item) for item in expected}:
                return False
        elif actual != _normalize(expected):
            return False
    return True


def _now() -> str:
    return pendulum.now("UTC").to_iso8601_string()
