"""Record store package."""

from finsmart.store.record_store import RecordStore

__all__ = ["RecordStore"]
