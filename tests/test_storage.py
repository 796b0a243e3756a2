"""Tests for snapshot stores and backends."""

import json

import pytest

from conftest import make_record
from scansave.models.chat import ChatMessage, ChatSession
from scansave.services.storage import (
    ACTIVE_SESSION_KEY,
    RECEIPTS_KEY,
    SESSIONS_KEY,
    InMemoryBackend,
    JsonFileBackend,
    JsonReceiptStore,
    JsonSessionStore,
    PersistenceError,
    StorageError,
)


class TestJsonFileBackend:
    """Tests for the on-disk backend."""

    def test_missing_key_reads_none(self, tmp_path):
        backend = JsonFileBackend(tmp_path)
        assert backend.read("receipts") is None

    def test_write_then_read(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "nested")
        backend.write("receipts", "[]")
        assert backend.read("receipts") == "[]"
        assert (tmp_path / "nested" / "receipts.json").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        backend = JsonFileBackend(tmp_path)
        backend.write("receipts", "[1]")
        backend.write("receipts", "[2]")
        assert backend.read("receipts") == "[2]"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["receipts.json"]

    def test_delete(self, tmp_path):
        backend = JsonFileBackend(tmp_path)
        backend.write("active_session_id", '"x"')
        backend.delete("active_session_id")
        backend.delete("active_session_id")
        assert backend.read("active_session_id") is None

    def test_stores_round_trip_on_disk(self, tmp_path):
        """Test a ledger written to disk reads back field-for-field."""
        records = [make_record(insight="Tasty!"), make_record(store_name="Fuel Stop")]
        JsonReceiptStore(JsonFileBackend(tmp_path)).save(records)
        loaded = JsonReceiptStore(JsonFileBackend(tmp_path)).load()
        assert loaded == records


class TestJsonReceiptStore:
    """Tests for the receipt snapshot store."""

    def test_empty_store_loads_empty(self):
        assert JsonReceiptStore(InMemoryBackend()).load() == []

    def test_snapshot_uses_wire_keys(self):
        backend = InMemoryBackend()
        JsonReceiptStore(backend).save([make_record()])
        data = json.loads(backend.values[RECEIPTS_KEY])
        assert data[0]["storeName"] == "Corner Bistro"
        assert data[0]["category"] == "food_dining"

    def test_corrupt_snapshot_raises_persistence_error(self):
        backend = InMemoryBackend({RECEIPTS_KEY: "{not json"})
        with pytest.raises(PersistenceError) as exc_info:
            JsonReceiptStore(backend).load()
        assert exc_info.value.key == RECEIPTS_KEY
        assert isinstance(exc_info.value, StorageError)

    def test_wrong_shape_raises_persistence_error(self):
        backend = InMemoryBackend({RECEIPTS_KEY: json.dumps([{"storeName": "x"}])})
        with pytest.raises(PersistenceError):
            JsonReceiptStore(backend).load()


class TestJsonSessionStore:
    """Tests for the session snapshot store."""

    def test_sessions_round_trip(self):
        store = JsonSessionStore(InMemoryBackend())
        sessions = [ChatSession(messages=[ChatMessage.model("Hello")])]
        store.save_sessions(sessions)
        assert store.load_sessions() == sessions

    def test_active_id_round_trip(self):
        backend = InMemoryBackend()
        store = JsonSessionStore(backend)
        store.save_active_session_id("session-1")
        assert backend.values[ACTIVE_SESSION_KEY] == '"session-1"'
        assert store.load_active_session_id() == "session-1"

    def test_clearing_active_id_removes_key(self):
        backend = InMemoryBackend()
        store = JsonSessionStore(backend)
        store.save_active_session_id("session-1")
        store.save_active_session_id(None)
        assert ACTIVE_SESSION_KEY not in backend.values
        assert store.load_active_session_id() is None

    def test_non_string_active_id_is_corrupt(self):
        store = JsonSessionStore(InMemoryBackend({ACTIVE_SESSION_KEY: "42"}))
        with pytest.raises(PersistenceError):
            store.load_active_session_id()

    def test_corrupt_sessions_raise(self):
        store = JsonSessionStore(InMemoryBackend({SESSIONS_KEY: "[{]"}))
        with pytest.raises(PersistenceError):
            store.load_sessions()
