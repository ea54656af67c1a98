"""
Storage for the database API key, backed by the OS keyring.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

KEYRING_SERVICE_NAME = "meetingdesk"


class CredentialStore:
    """
    Keeps one API key per project URL.

    Keys go to the system keyring. When the keyring backend fails, the store
    falls back to a plaintext JSON file readable only by the current user and
    reports that through ``insecure_storage_warning``.
    """

    def __init__(self, cache_file: Path | None = None):
        self.cache_file = cache_file or Path.home() / ".meetingdesk_credentials.json"
        self._keyring_supported = True
        self._backend = "keyring"
        self._insecure_storage_warning: Optional[str] = None

    @property
    def backend(self) -> str:
        """Return the active backend (keyring or file)."""
        return self._backend

    @property
    def insecure_storage_warning(self) -> Optional[str]:
        return self._insecure_storage_warning

    def load_key(self, project_url: str) -> Optional[str]:
        if self._keyring_supported:
            try:
                key = keyring.get_password(KEYRING_SERVICE_NAME, project_url)
            except KeyringError as exc:  # pragma: no cover - environment dependent
                self._handle_keyring_failure(f"reading credentials failed: {exc}")
            else:
                if key:
                    return key

        return self._read_file().get(project_url)

    def save_key(self, project_url: str, api_key: str) -> None:
        if self._keyring_supported:
            try:
                keyring.set_password(KEYRING_SERVICE_NAME, project_url, api_key)
                return
            except KeyringError as exc:  # pragma: no cover - environment dependent
                self._handle_keyring_failure(f"writing credentials failed: {exc}")

        stored = self._read_file()
        stored[project_url] = api_key
        self._write_file(stored)

    def clear(self, project_url: str) -> None:
        """Forget the key of a project in both backends."""
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, project_url)
        except PasswordDeleteError:
            pass
        except KeyringError as exc:  # pragma: no cover - environment dependent
            logger.warning("Could not remove credentials from keyring: %s", exc)

        stored = self._read_file()
        if stored.pop(project_url, None) is not None:
            self._write_file(stored)

    def _read_file(self) -> Dict[str, str]:
        if not self.cache_file.exists():
            return {}
        try:
            with open(self.cache_file, "r", encoding="utf-8") as file_handle:
                data = json.load(file_handle)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load credentials file %s: %s", self.cache_file, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_file(self, stored: Dict[str, str]) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as file_handle:
                json.dump(stored, file_handle)
            self.cache_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save credentials to %s: %s", self.cache_file, exc)

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext file.",
                reason,
            )
        self._keyring_supported = False
        self._backend = "file"
        if not self._insecure_storage_warning:
            self._insecure_storage_warning = (
                f"Secure credential storage unavailable ({reason}). "
                f"Falling back to plaintext file at {self.cache_file}."
            )
