"""
Advisor Context

Compact, JSON-serializable views of a snapshot that are sent to the
advisory model. Amounts become floats here because this is a prompt
payload, not a persisted record.

DESIGN DECISION: "Recent" means newest by date, not position in the
stored list. New transactions are prepended, so positional slicing
would pick the oldest ones.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from finsmart.metrics.balances import total_outstanding_debt
from finsmart.metrics.summaries import sort_by_date
from finsmart.models.ledger import Budget, Snapshot, Transaction

DEFAULT_ANALYSIS_WINDOW = 50
DEFAULT_CHAT_WINDOW = 10


def _as_payload(value: Any) -> Any:
    """Recursively turn Decimals into floats for json.dumps."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _as_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_as_payload(v) for v in value]
    return value


def _transaction_payload(t: Transaction) -> dict[str, Any]:
    return {
        "id": t.id,
        "amount": float(t.amount),
        "description": t.description,
        "date": t.date.isoformat(),
        "category": t.category.value,
        "type": t.type.value,
        "isRecurring": t.is_recurring,
    }


def _budget_payload(b: Budget) -> dict[str, Any]:
    return {"id": b.id, "category": b.category.value, "limit": float(b.limit)}


def recent_transactions(transactions: Iterable[Transaction], window: int) -> list[Transaction]:
    """The `window` newest transactions, newest first."""
    if window <= 0:
        return []
    return sort_by_date(transactions)[:window]


def analysis_summary(snapshot: Snapshot, window: int = DEFAULT_ANALYSIS_WINDOW) -> dict[str, Any]:
    """Payload for a full financial-health analysis."""
    return _as_payload({
        "transactions": [
            _transaction_payload(t) for t in recent_transactions(snapshot.transactions, window)
        ],
        "totalDebt": total_outstanding_debt(snapshot.debts),
        "budgets": [_budget_payload(b) for b in snapshot.budgets],
    })


def chat_context(snapshot: Snapshot, window: int = DEFAULT_CHAT_WINDOW) -> dict[str, Any]:
    """Payload accompanying a free-form advisor question."""
    return _as_payload({
        "totalDebt": total_outstanding_debt(snapshot.debts),
        "recentTransactions": [
            _transaction_payload(t) for t in recent_transactions(snapshot.transactions, window)
        ],
        "budgets": [_budget_payload(b) for b in snapshot.budgets],
    })
