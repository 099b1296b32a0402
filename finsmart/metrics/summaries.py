"""
Transaction Summaries

Pure functions over transaction collections: period totals, category
breakdowns, the month-over-month series, search and display ordering.

DESIGN DECISION: Nothing here is cached. Views are recomputed from the
latest snapshot every time; a personal ledger is small enough that
recomputation is cheaper than keeping derived state in sync.

Income and expense are ALWAYS partitioned by transaction type, never
inferred from category.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, computed_field

from finsmart.models.ledger import Category, Transaction, TransactionType

PeriodPredicate = Callable[[Transaction], bool]

# Fixed English abbreviations so labels don't depend on the process locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

ZERO = Decimal("0")


class PeriodSummary(BaseModel):
    """Income, expenses and balance over a period."""

    model_config = ConfigDict(frozen=True)

    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @computed_field
    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


class MonthlyBucket(BaseModel):
    """Totals for one calendar month of one year."""

    model_config = ConfigDict(frozen=True)

    month: str  # "YYYY-MM"
    label: str  # "May 2025"
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @computed_field
    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


def same_month(reference: date) -> PeriodPredicate:
    """Predicate for transactions in the same calendar month and year as reference."""
    def _matches(t: Transaction) -> bool:
        return t.date.year == reference.year and t.date.month == reference.month
    return _matches


def date_range(start: Optional[date] = None, end: Optional[date] = None) -> PeriodPredicate:
    """Predicate for transactions dated within [start, end]; open ends are unbounded."""
    def _matches(t: Transaction) -> bool:
        if start is not None and t.date < start:
            return False
        if end is not None and t.date > end:
            return False
        return True
    return _matches


def period_summary(
    transactions: Iterable[Transaction],
    period_predicate: Optional[PeriodPredicate] = None,
) -> PeriodSummary:
    """
    Sum amounts by type for transactions matching the predicate.

    With no predicate every transaction counts.
    """
    income = ZERO
    expenses = ZERO
    for t in transactions:
        if period_predicate is not None and not period_predicate(t):
            continue
        if t.type == TransactionType.INCOME:
            income += t.amount
        elif t.type == TransactionType.EXPENSE:
            expenses += t.amount
        else:
            raise ValueError(f"Unhandled transaction type: {t.type!r}")
    return PeriodSummary(income=income, expenses=expenses)


def category_breakdown(
    transactions: Iterable[Transaction],
    sort_by_total: bool = False,
) -> dict[Category, Decimal]:
    """
    Total expense amount per category.

    Keys follow first-seen order unless sort_by_total is set, in which
    case they run from largest to smallest total. Income never appears.
    """
    totals: dict[Category, Decimal] = {}
    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        category = Category(t.category)
        totals[category] = totals.get(category, ZERO) + t.amount

    if sort_by_total:
        return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))
    return totals


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def month_label(day: date) -> str:
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.year}"


def monthly_series(transactions: Iterable[Transaction]) -> list[MonthlyBucket]:
    """
    Income and expense totals per calendar month, oldest first.

    Buckets are keyed by year AND month, so May 2024 and May 2025 stay
    separate. Months without transactions are omitted.
    """
    buckets: dict[tuple[int, int], dict[str, Decimal]] = {}
    for t in transactions:
        totals = buckets.setdefault((t.date.year, t.date.month), {"income": ZERO, "expenses": ZERO})
        if t.type == TransactionType.INCOME:
            totals["income"] += t.amount
        else:
            totals["expenses"] += t.amount

    series = []
    for (year, month), totals in sorted(buckets.items()):
        first_day = date(year, month, 1)
        series.append(MonthlyBucket(
            month=month_key(first_day),
            label=month_label(first_day),
            income=totals["income"],
            expenses=totals["expenses"],
        ))
    return series


def sort_by_date(
    transactions: Iterable[Transaction],
    newest_first: bool = True,
) -> list[Transaction]:
    """Display ordering. Ties keep their stored order."""
    return sorted(transactions, key=lambda t: t.date, reverse=newest_first)


def search_transactions(
    transactions: Iterable[Transaction],
    text: str,
) -> list[Transaction]:
    """
    Case-insensitive match on description or category name, newest first.

    An empty query matches everything.
    """
    needle = text.strip().lower()
    matches = [
        t for t in transactions
        if needle in t.description.lower() or needle in t.category.value.lower()
    ]
    return sort_by_date(matches)
