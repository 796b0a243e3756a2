"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
JSON files on disk back the app; an in-memory backend backs the tests.
"""

from scansave.services.storage.interface import (
    DuplicateError,
    NotFoundError,
    PersistenceError,
    ReceiptStoreInterface,
    SessionStoreInterface,
    StorageBackend,
    StorageError,
)
from scansave.services.storage.backends import (
    InMemoryBackend,
    JsonFileBackend,
)
from scansave.services.storage.snapshots import (
    ACTIVE_SESSION_KEY,
    RECEIPTS_KEY,
    SESSIONS_KEY,
    JsonReceiptStore,
    JsonSessionStore,
)

__all__ = [
    # Interfaces
    "ReceiptStoreInterface",
    "SessionStoreInterface",
    "StorageBackend",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryBackend",
    "JsonFileBackend",
    "JsonReceiptStore",
    "JsonSessionStore",
    # Keys
    "ACTIVE_SESSION_KEY",
    "RECEIPTS_KEY",
    "SESSIONS_KEY",
]
