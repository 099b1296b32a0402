"""
Ledger Operations

Validated mutations of the record store. Each operation:
1. Validates its input completely
2. Computes a full replacement collection
3. Swaps it into the store (which marks it pending persistence)
4. Returns the new authoritative collection

IMPORTANT: Validation happens before step 3. A rejected operation
leaves the store exactly as it was.
"""

import re
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finsmart.ledger.errors import ConflictError, NotFoundError, ValidationError
from finsmart.models.ledger import (
    Budget,
    Category,
    CollectionKind,
    Debt,
    EmergencyFund,
    Snapshot,
    Transaction,
    UserSettings,
)
from finsmart.store import RecordStore

ModelT = TypeVar("ModelT", bound=BaseModel)

_CURRENCY_CODE = re.compile(r"^[A-Za-z]{3}$")


def _describe(error: PydanticValidationError) -> tuple[str, str]:
    """First pydantic error as (field, message)."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "value"
    return field, f"{field}: {first.get('msg', 'invalid value')}"


def _coerce(model: type[ModelT], value: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Accept a model instance or a plain mapping; never leak pydantic errors."""
    if isinstance(value, model):
        return value
    if not isinstance(value, Mapping):
        raise ValidationError(
            f"Expected {model.__name__} or a mapping, got {type(value).__name__}"
        )

    data = dict(value)
    if "id" in data and data["id"] in (None, ""):
        # Absent id: let the model assign a fresh one
        del data["id"]
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        field, message = _describe(e)
        raise ValidationError(message, field=field) from e


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return amount


def _to_category(value: Any) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise ValidationError(f"Unknown category: {value!r}", field="category")


def _check_unique_ids(records: Iterable[Any], what: str) -> None:
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise ConflictError(f"Duplicate {what} id: {record.id}", field="id")
        seen.add(record.id)


class Ledger:
    """
    Validated operations over a RecordStore.

    The ledger holds no state of its own; everything lives in the store.
    """

    def __init__(self, store: RecordStore):
        self._store = store

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def snapshot(self) -> Snapshot:
        return self._store.snapshot

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        transaction: Union[Transaction, Mapping[str, Any]],
    ) -> tuple[Transaction, ...]:
        """
        Record a new transaction.

        The new transaction is prepended; display order is the caller's
        concern (see metrics.sort_by_date).

        Raises:
            ValidationError: Non-positive amount, empty description, or a
                category that doesn't belong to the transaction's type
            ConflictError: The id is already used
        """
        t = _coerce(Transaction, transaction)

        if t.amount <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")
        if not t.description.strip():
            raise ValidationError("Description is required", field="description")
        if not t.category.accepts(t.type):
            raise ValidationError(
                f"{t.category.value} is not a valid {t.type.value.lower()} category",
                field="category",
            )

        current = self._store.snapshot.transactions
        if any(existing.id == t.id for existing in current):
            raise ConflictError(f"Transaction id already exists: {t.id}", field="id")

        updated = (t,) + current
        self._store.replace(CollectionKind.TRANSACTIONS, updated)
        return updated

    def delete_transaction(self, transaction_id: str) -> tuple[Transaction, ...]:
        """Remove a transaction by id. Unknown ids are a no-op."""
        current = self._store.snapshot.transactions
        updated = tuple(t for t in current if t.id != transaction_id)
        if len(updated) == len(current):
            return current

        self._store.replace(CollectionKind.TRANSACTIONS, updated)
        return updated

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def add_budget(
        self,
        category: Union[Category, str],
        limit: Union[Decimal, int, float, str],
        budget_id: Optional[str] = None,
    ) -> tuple[Budget, ...]:
        """
        Create a monthly budget for a category.

        Raises:
            ValidationError: limit <= 0 or unknown category
            ConflictError: A budget for this category (or this id) exists
        """
        category = _to_category(category)
        amount = _to_decimal(limit, "limit")
        if amount <= 0:
            raise ValidationError("Budget limit must be greater than zero", field="limit")

        current = self._store.snapshot.budgets
        if any(b.category == category for b in current):
            raise ConflictError(
                f"Budget for this category already exists: {category.value}",
                field="category",
            )

        budget = _coerce(Budget, {"id": budget_id, "category": category, "limit": amount})
        if any(b.id == budget.id for b in current):
            raise ConflictError(f"Budget id already exists: {budget.id}", field="id")

        updated = current + (budget,)
        self._store.replace(CollectionKind.BUDGETS, updated)
        return updated

    def update_budget_limit(
        self,
        budget_id: str,
        limit: Union[Decimal, int, float, str],
    ) -> tuple[Budget, ...]:
        """
        Change a budget's limit in place.

        Raises:
            NotFoundError: No budget with this id
            ValidationError: limit <= 0
        """
        current = self._store.snapshot.budgets
        existing = next((b for b in current if b.id == budget_id), None)
        if existing is None:
            raise NotFoundError(f"Budget not found: {budget_id}", field="id")

        amount = _to_decimal(limit, "limit")
        if amount <= 0:
            raise ValidationError("Budget limit must be greater than zero", field="limit")

        replacement = _coerce(Budget, {**existing.model_dump(), "limit": amount})
        updated = tuple(replacement if b.id == budget_id else b for b in current)
        self._store.replace(CollectionKind.BUDGETS, updated)
        return updated

    def delete_budget(self, budget_id: str) -> tuple[Budget, ...]:
        """Remove a budget by id. Unknown ids are a no-op."""
        current = self._store.snapshot.budgets
        updated = tuple(b for b in current if b.id != budget_id)
        if len(updated) == len(current):
            return current

        self._store.replace(CollectionKind.BUDGETS, updated)
        return updated

    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_debt(debt: Debt, is_new: bool) -> None:
        if not debt.name.strip():
            raise ValidationError("Debt name is required", field="name")
        if debt.remaining_amount < 0:
            raise ValidationError("Remaining amount cannot be negative", field="remaining_amount")
        if debt.total_amount <= 0:
            raise ValidationError("Total amount must be greater than zero", field="total_amount")
        if is_new and debt.remaining_amount > debt.total_amount:
            raise ValidationError(
                "Remaining amount cannot exceed the total amount",
                field="remaining_amount",
            )

    def add_debt(self, debt: Union[Debt, Mapping[str, Any]]) -> tuple[Debt, ...]:
        """
        Start tracking a debt.

        Raises:
            ValidationError: Empty name, negative remaining amount, or
                remaining amount above the total
            ConflictError: The id is already used
        """
        d = _coerce(Debt, debt)
        self._check_debt(d, is_new=True)

        current = self._store.snapshot.debts
        if any(existing.id == d.id for existing in current):
            raise ConflictError(f"Debt id already exists: {d.id}", field="id")

        updated = current + (d,)
        self._store.replace(CollectionKind.DEBTS, updated)
        return updated

    def replace_debts(
        self,
        debts: Iterable[Union[Debt, Mapping[str, Any]]],
    ) -> tuple[Debt, ...]:
        """
        Replace the whole debt list (upsert from an edited list).

        Debts not yet stored get the same checks as add_debt.

        Raises:
            ValidationError: Any debt fails validation
            ConflictError: Two debts share an id
        """
        updated = tuple(_coerce(Debt, d) for d in debts)
        known_ids = {d.id for d in self._store.snapshot.debts}
        for d in updated:
            self._check_debt(d, is_new=d.id not in known_ids)
        _check_unique_ids(updated, "debt")

        self._store.replace(CollectionKind.DEBTS, updated)
        return updated

    # -------------------------------------------------------------------------
    # Singletons
    # -------------------------------------------------------------------------

    def update_emergency_fund(
        self,
        fund: Union[EmergencyFund, Mapping[str, Any]],
    ) -> EmergencyFund:
        """
        Replace the emergency fund wholesale.

        Raises:
            ValidationError: goal_amount <= 0 or current_amount < 0
        """
        f = _coerce(EmergencyFund, fund)
        if f.goal_amount <= 0:
            raise ValidationError("Goal amount must be greater than zero", field="goal_amount")
        if f.current_amount < 0:
            raise ValidationError("Current amount cannot be negative", field="current_amount")

        self._store.replace(CollectionKind.EMERGENCY_FUND, f)
        return f

    def update_settings(
        self,
        settings: Union[UserSettings, Mapping[str, Any]],
    ) -> UserSettings:
        """
        Replace user settings.

        Raises:
            ValidationError: Currency isn't a three-letter code or name is empty
        """
        s = _coerce(UserSettings, settings)
        if not _CURRENCY_CODE.match(s.currency):
            raise ValidationError(
                f"Currency must be a three-letter code, got {s.currency!r}",
                field="currency",
            )
        if not s.name.strip():
            raise ValidationError("Display name is required", field="name")

        s = s.model_copy(update={"currency": s.currency.upper()})
        self._store.replace(CollectionKind.SETTINGS, s)
        return s
