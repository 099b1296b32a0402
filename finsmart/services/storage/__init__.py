"""
Storage Services Package

Provides abstract interfaces and concrete implementations for record
persistence. Local JSON files are the default; Google Sheets and an
in-memory store are interchangeable behind the same interface.
"""

from finsmart.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptRecordError,
    RecordStorageInterface,
    StorageError,
)
from finsmart.services.storage.json_files import JsonFileRecordStorage
from finsmart.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    # Exceptions
    "ConnectionError",
    "CorruptRecordError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "JsonFileRecordStorage",
]
