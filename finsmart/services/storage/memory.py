"""
In-Memory Storage

Dict-backed implementations of the storage interfaces. Used in tests
and when persistence is switched off (FINSMART_STORAGE_BACKEND=memory).

Values are stored as JSON text so a record that can't survive
serialization fails here exactly as it would on disk.
"""

import json
from typing import Any, Optional

from finsmart.models.audit import AuditEvent
from finsmart.services.storage.interface import (
    AuditStorageInterface,
    CorruptRecordError,
    RecordStorageInterface,
    StorageError,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """Key-based record storage held in a dict."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._blobs: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str) -> Optional[Any]:
        raw = self._blobs.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptRecordError(key, str(e))

    def write(self, key: str, value: Any) -> None:
        try:
            self._blobs[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON-serializable: {e}")

    def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._blobs)

    def put_raw(self, key: str, raw: str) -> None:
        """Store raw text under a key, bypassing serialization."""
        self._blobs[key] = raw


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
