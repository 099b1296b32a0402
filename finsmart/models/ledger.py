"""
Ledger Data Models for FinSmart

These models define the canonical records owned by the ledger:
transactions, budgets, debts, the emergency fund and user settings.
They are designed to:
1. Enforce type and range safety at runtime
2. Round-trip through key-based JSON storage unchanged
3. Stay immutable once created (every change is a replacement)

DESIGN DECISION: Records are frozen Pydantic v2 models serialized with
camelCase aliases. Blobs written by earlier versions of the app
(isRecurring, remainingAmount, ...) load without migration.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def new_record_id() -> str:
    """Generate a unique identifier for a new record."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. Summaries partition on this, never on category."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(str, Enum):
    """
    Supported transaction and budget categories.

    The enum is shared by both transaction types, but every member belongs
    to a partition (see EXPENSE_CATEGORIES / INCOME_CATEGORIES) that decides
    which type may use it.
    """
    HOUSING = "Housing"
    FOOD = "Food"
    TRANSPORT = "Transport"
    HEALTH = "Health"
    WORK = "Work-related"
    SUBSCRIPTIONS = "Subscriptions"
    DEBTS = "Debts"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    SAVINGS = "Savings"
    OTHER = "Other"
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENT = "Investment"

    def accepts(self, transaction_type: TransactionType) -> bool:
        """Can a transaction of this type be assigned this category?"""
        return transaction_type in CATEGORY_PARTITIONS[self]


EXPENSE_CATEGORIES: tuple[Category, ...] = (
    Category.HOUSING,
    Category.FOOD,
    Category.TRANSPORT,
    Category.HEALTH,
    Category.WORK,
    Category.SUBSCRIPTIONS,
    Category.DEBTS,
    Category.ENTERTAINMENT,
    Category.SHOPPING,
    Category.SAVINGS,
    Category.OTHER,
)

INCOME_CATEGORIES: tuple[Category, ...] = (
    Category.SALARY,
    Category.FREELANCE,
    Category.INVESTMENT,
    Category.OTHER,
)

# Other is the shared fallback and sits in both partitions.
CATEGORY_PARTITIONS: dict[Category, frozenset[TransactionType]] = {
    category: frozenset(
        kind
        for kind, members in (
            (TransactionType.EXPENSE, EXPENSE_CATEGORIES),
            (TransactionType.INCOME, INCOME_CATEGORIES),
        )
        if category in members
    )
    for category in Category
}

_unpartitioned = [c.value for c, kinds in CATEGORY_PARTITIONS.items() if not kinds]
if _unpartitioned:
    raise RuntimeError(f"Categories missing from every partition: {_unpartitioned}")


class CollectionKind(str, Enum):
    """
    The independently persisted blobs that make up a snapshot.

    Each kind maps to one storage key and one Snapshot field.
    """
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    DEBTS = "debts"
    EMERGENCY_FUND = "emergency_fund"
    SETTINGS = "settings"

    @property
    def storage_key(self) -> str:
        return STORAGE_KEYS[self]


STORAGE_KEYS: dict[CollectionKind, str] = {
    CollectionKind.TRANSACTIONS: "finsmart_transactions",
    CollectionKind.BUDGETS: "finsmart_budgets",
    CollectionKind.DEBTS: "finsmart_debts",
    CollectionKind.EMERGENCY_FUND: "finsmart_emergency",
    CollectionKind.SETTINGS: "finsmart_settings",
}


# =============================================================================
# RECORD MODELS
# =============================================================================

def _coerce_date(value: Any) -> Any:
    """Accept ISO datetime strings and datetimes where a calendar date is expected."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class LedgerRecord(BaseModel):
    """Shared configuration for every persisted record."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    def to_storage(self) -> dict:
        """Serialize to the JSON shape written to storage."""
        return self.model_dump(mode="json", by_alias=True)


class Transaction(LedgerRecord):
    """
    A single income or expense entry.

    Transactions are immutable once created; the only lifecycle
    change is deletion by id.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique transaction ID",
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount, always non-negative; direction comes from type",
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the money was for",
    )
    date: date
    category: Category = Field(
        default=Category.OTHER,
        description="Transaction category",
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Income or expense",
    )
    is_recurring: bool = Field(
        default=False,
        description="Informational marker only; nothing is scheduled from it",
    )

    @field_validator("date", mode="before")
    @classmethod
    def accept_datetime_strings(cls, v: Any) -> Any:
        return _coerce_date(v)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


class Budget(LedgerRecord):
    """Monthly spending limit for one category."""

    id: str = Field(default_factory=new_record_id, min_length=1)
    category: Category
    limit: Decimal = Field(
        ...,
        gt=0,
        description="Monthly limit",
    )


class Debt(LedgerRecord):
    """
    A tracked liability.

    remaining_amount is recorded at creation and never decremented
    by the ledger; payoff strategy is left to the advisor.
    """

    id: str = Field(default_factory=new_record_id, min_length=1)
    name: str = Field(..., min_length=1)
    total_amount: Decimal = Field(..., gt=0)
    remaining_amount: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Annual percentage rate",
    )
    minimum_payment: Decimal = Field(default=Decimal("0"), ge=0)
    due_date: date = Field(default_factory=date.today)

    @field_validator("due_date", mode="before")
    @classmethod
    def accept_datetime_strings(cls, v: Any) -> Any:
        return _coerce_date(v)


class EmergencyFund(LedgerRecord):
    """Savings goal singleton. current_amount may exceed the goal."""

    goal_amount: Decimal = Field(default=Decimal("10000"), gt=0)
    current_amount: Decimal = Field(default=Decimal("2000"), ge=0)
    deadline: Optional[date] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def accept_datetime_strings(cls, v: Any) -> Any:
        return _coerce_date(v)


class UserSettings(LedgerRecord):
    """Display preferences. Only the currency is read by the engine."""

    currency: str = Field(default="USD", min_length=1, max_length=8)
    dark_mode: bool = False
    name: str = "User"


class Snapshot(BaseModel):
    """
    The full value of every collection plus settings at a point in time.

    Collections are tuples so a snapshot can be shared without
    anyone mutating it underneath the metrics engine.
    """

    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()
    debts: tuple[Debt, ...] = ()
    emergency_fund: EmergencyFund = Field(default_factory=EmergencyFund)
    settings: UserSettings = Field(default_factory=UserSettings)

    def collection(self, kind: CollectionKind) -> Any:
        """Return the value stored for a collection kind."""
        return getattr(self, kind.value)
