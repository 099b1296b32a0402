"""
Record Store

Holds the current Snapshot: the four record collections plus user
settings. The store is purely in-memory.

DESIGN DECISION: The store never persists itself. replace() swaps one
collection and marks it pending; whoever owns the storage backend
writes the pending collections (see LedgerFlow.flush). This keeps the
ledger free of I/O and makes every mutation testable without storage.
"""

from collections import Counter
from datetime import date
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from finsmart.models.ledger import (
    Budget,
    CollectionKind,
    Debt,
    EmergencyFund,
    Snapshot,
    Transaction,
    UserSettings,
)
from finsmart.services.storage.interface import (
    CorruptRecordError,
    RecordStorageInterface,
)
from finsmart.store import defaults


# Collection kinds holding a sequence of records, and their record type
_SEQUENCE_KINDS: dict[CollectionKind, type] = {
    CollectionKind.TRANSACTIONS: Transaction,
    CollectionKind.BUDGETS: Budget,
    CollectionKind.DEBTS: Debt,
}

# Collection kinds holding a single record
_SINGLETON_KINDS: dict[CollectionKind, type] = {
    CollectionKind.EMERGENCY_FUND: EmergencyFund,
    CollectionKind.SETTINGS: UserSettings,
}


def _defaults_for(kind: CollectionKind, today: Optional[date]) -> Any:
    factories: dict[CollectionKind, Callable[[], Any]] = {
        CollectionKind.TRANSACTIONS: lambda: defaults.seed_transactions(today),
        CollectionKind.BUDGETS: defaults.seed_budgets,
        CollectionKind.DEBTS: defaults.seed_debts,
        CollectionKind.EMERGENCY_FUND: defaults.default_emergency_fund,
        CollectionKind.SETTINGS: defaults.default_settings,
    }
    return factories[kind]()


def _check_unique(kind: CollectionKind, records: tuple) -> None:
    """Reject blobs that repeat an id, or a category for budgets."""
    duplicates = sorted(i for i, n in Counter(r.id for r in records).items() if n > 1)
    if duplicates:
        raise CorruptRecordError(kind.storage_key, f"duplicate ids {duplicates}")

    if kind == CollectionKind.BUDGETS:
        counts = Counter(b.category.value for b in records)
        repeated = sorted(c for c, n in counts.items() if n > 1)
        if repeated:
            raise CorruptRecordError(
                kind.storage_key, f"more than one budget for {repeated}"
            )


def _decode(kind: CollectionKind, raw: Any) -> Any:
    """Turn a stored blob back into records."""
    try:
        if kind in _SEQUENCE_KINDS:
            if not isinstance(raw, list):
                raise CorruptRecordError(kind.storage_key, "expected a list")
            model = _SEQUENCE_KINDS[kind]
            records = tuple(model.model_validate(item) for item in raw)
            _check_unique(kind, records)
            return records
        return _SINGLETON_KINDS[kind].model_validate(raw)
    except PydanticValidationError as e:
        raise CorruptRecordError(kind.storage_key, str(e))


class RecordStore:
    """
    In-memory holder of the current Snapshot.

    Usage:
        store = RecordStore()
        store.load(storage)          # defaults fill absent keys
        store.replace(CollectionKind.BUDGETS, new_budgets)
        store.pending                # {CollectionKind.BUDGETS, ...}
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._snapshot = snapshot or Snapshot()
        self._pending: set[CollectionKind] = set()

    @property
    def snapshot(self) -> Snapshot:
        """Current snapshot. Frozen, so callers may keep it across mutations."""
        return self._snapshot

    @property
    def pending(self) -> frozenset[CollectionKind]:
        """Collection kinds replaced but not yet persisted by the caller."""
        return frozenset(self._pending)

    def load(
        self,
        source: Optional[RecordStorageInterface] = None,
        today: Optional[date] = None,
    ) -> Snapshot:
        """
        Load every collection from a storage backend, defaulting absent keys.

        Defaulted collections are marked pending so the first flush
        writes them, populating the absent keys.

        Args:
            source: Storage backend. If None, everything is defaulted.
            today: Reference date for seed transactions (defaults to today)

        Raises:
            CorruptRecordError: If a stored blob doesn't match its schema
        """
        values: dict[str, Any] = {}
        defaulted: set[CollectionKind] = set()

        for kind in CollectionKind:
            raw = source.read(kind.storage_key) if source is not None else None
            if raw is None:
                values[kind.value] = _defaults_for(kind, today)
                defaulted.add(kind)
            else:
                values[kind.value] = _decode(kind, raw)

        self._snapshot = Snapshot(**values)
        self._pending = defaulted
        return self._snapshot

    def replace(
        self,
        kind: CollectionKind,
        new_collection: Union[Iterable[Any], EmergencyFund, UserSettings],
    ) -> CollectionKind:
        """
        Swap a single collection and mark it pending persistence.

        Returns the kind that now needs persisting.
        """
        if kind in _SEQUENCE_KINDS:
            model = _SEQUENCE_KINDS[kind]
            value = tuple(new_collection)
            for item in value:
                if not isinstance(item, model):
                    raise TypeError(
                        f"{kind.value} must contain {model.__name__}, got {type(item).__name__}"
                    )
        else:
            model = _SINGLETON_KINDS[kind]
            if not isinstance(new_collection, model):
                raise TypeError(
                    f"{kind.value} must be {model.__name__}, got {type(new_collection).__name__}"
                )
            value = new_collection

        self._snapshot = self._snapshot.model_copy(update={kind.value: value})
        self._pending.add(kind)
        return kind

    def mark_persisted(self, kind: CollectionKind) -> None:
        """Record that the caller has written a collection."""
        self._pending.discard(kind)

    def export(self, kind: CollectionKind) -> Any:
        """JSON-serializable blob for a collection kind, as written to storage."""
        value = self._snapshot.collection(kind)
        if kind in _SEQUENCE_KINDS:
            return [record.to_storage() for record in value]
        return value.to_storage()
