"""
Abstract Storage Interface

DESIGN DECISION: The core never touches the storage medium directly.
Every durable value goes through one of these interfaces, which allows us to:
1. Use JSON files on disk in the app
2. Use in-memory storage for testing
3. Swap in any other backing store later
4. Keep ledger and session logic decoupled from storage

Three independent values are persisted: the receipt ledger, the chat
session list, and the active session id. Each is written as a whole
snapshot and read back as a whole snapshot.
"""

from abc import ABC, abstractmethod
from typing import Optional

from scansave.models.chat import ChatSession
from scansave.models.receipt import ReceiptRecord


class StorageBackend(ABC):
    """
    Raw keyed storage for serialized snapshots.

    Values are JSON text. A missing key reads as None.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the stored text for a key.

        Raises:
            PersistenceError: If the value exists but cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, payload: str) -> None:
        """
        Durably replace the value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        pass


class ReceiptStoreInterface(ABC):
    """Snapshot store for the receipt ledger."""

    @abstractmethod
    def load(self) -> list[ReceiptRecord]:
        """
        Load the last saved ledger snapshot.

        Returns:
            Records most-recent-first; empty if nothing was saved yet

        Raises:
            PersistenceError: If the snapshot is unreadable or malformed
        """
        pass

    @abstractmethod
    def save(self, records: list[ReceiptRecord]) -> None:
        """
        Save the full ledger snapshot.

        Raises:
            StorageError: If the write fails
        """
        pass


class SessionStoreInterface(ABC):
    """Snapshot store for chat sessions and the active session id."""

    @abstractmethod
    def load_sessions(self) -> list[ChatSession]:
        """
        Load the saved sessions, most recent first.

        Raises:
            PersistenceError: If the snapshot is unreadable or malformed
        """
        pass

    @abstractmethod
    def save_sessions(self, sessions: list[ChatSession]) -> None:
        pass

    @abstractmethod
    def load_active_session_id(self) -> Optional[str]:
        """
        Raises:
            PersistenceError: If the value is unreadable or malformed
        """
        pass

    @abstractmethod
    def save_active_session_id(self, session_id: Optional[str]) -> None:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """A durable snapshot exists but is unreadable or malformed."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
