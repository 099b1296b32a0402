"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets or local JSON files for a real database later
2. Use in-memory storage for testing
3. Keep the ledger decoupled from any storage implementation

The contract is deliberately tiny: independently keyed JSON-serializable
blobs. The record store decides what goes in each blob; storage only
has to round-trip it faithfully.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from finsmart.models.audit import AuditEvent


class RecordStorageInterface(ABC):
    """
    Abstract interface for key-based record persistence.

    Any storage implementation (local files, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[Any]:
        """
        Read the blob stored under a key.

        Args:
            key: Storage key (e.g. 'finsmart_transactions')

        Returns:
            The decoded JSON value, or None if the key is absent

        Raises:
            CorruptRecordError: If the stored value can't be decoded
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """
        Replace the blob stored under a key.

        Args:
            key: Storage key
            value: JSON-serializable value

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptRecordError(StorageError):
    """A stored blob could not be decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(f"Stored record '{key}' is corrupt: {reason}")


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
