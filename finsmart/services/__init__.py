"""Services package."""

from finsmart.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CorruptRecordError,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    JsonFileRecordStorage,
    RecordStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "CorruptRecordError",
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "JsonFileRecordStorage",
    "RecordStorageInterface",
    "StorageError",
]
