"""
JSON snapshot stores

Concrete ReceiptStoreInterface / SessionStoreInterface implementations over
any StorageBackend. Snapshots use the camelCase wire format, so a ledger
written here reads back field-for-field.
"""

import json
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from scansave.models.chat import ChatSession
from scansave.models.receipt import ReceiptRecord
from scansave.services.storage.interface import (
    PersistenceError,
    ReceiptStoreInterface,
    SessionStoreInterface,
    StorageBackend,
)


RECEIPTS_KEY = "receipts"
SESSIONS_KEY = "chat_sessions"
ACTIVE_SESSION_KEY = "active_session_id"

_RECEIPTS = TypeAdapter(list[ReceiptRecord])
_SESSIONS = TypeAdapter(list[ChatSession])


class JsonReceiptStore(ReceiptStoreInterface):
    """Ledger snapshot stored as a JSON array of receipts."""

    def __init__(self, backend: StorageBackend, key: str = RECEIPTS_KEY):
        self._backend = backend
        self._key = key

    def load(self) -> list[ReceiptRecord]:
        raw = self._backend.read(self._key)
        if raw is None or not raw.strip():
            return []
        try:
            return _RECEIPTS.validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(self._key, f"malformed receipt snapshot ({e.error_count()} errors)")

    def save(self, records: list[ReceiptRecord]) -> None:
        payload = _RECEIPTS.dump_json(list(records), by_alias=True).decode("utf-8")
        self._backend.write(self._key, payload)


class JsonSessionStore(SessionStoreInterface):
    """Chat sessions and the active session id, stored under separate keys."""

    def __init__(
        self,
        backend: StorageBackend,
        sessions_key: str = SESSIONS_KEY,
        active_key: str = ACTIVE_SESSION_KEY,
    ):
        self._backend = backend
        self._sessions_key = sessions_key
        self._active_key = active_key

    def load_sessions(self) -> list[ChatSession]:
        raw = self._backend.read(self._sessions_key)
        if raw is None or not raw.strip():
            return []
        try:
            return _SESSIONS.validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(
                self._sessions_key,
                f"malformed session snapshot ({e.error_count()} errors)",
            )

    def save_sessions(self, sessions: list[ChatSession]) -> None:
        payload = _SESSIONS.dump_json(list(sessions), by_alias=True).decode("utf-8")
        self._backend.write(self._sessions_key, payload)

    def load_active_session_id(self) -> Optional[str]:
        raw = self._backend.read(self._active_key)
        if raw is None or not raw.strip():
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(self._active_key, f"malformed active session id: {e}")
        if value is not None and not isinstance(value, str):
            raise PersistenceError(self._active_key, "active session id must be a string")
        return value or None

    def save_active_session_id(self, session_id: Optional[str]) -> None:
        if session_id is None:
            self._backend.delete(self._active_key)
            return
        self._backend.write(self._active_key, json.dumps(session_id))
