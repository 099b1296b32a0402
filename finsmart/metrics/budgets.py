"""
Budget Utilization

How much of each monthly budget has been spent in a reference period.
Percentages are clamped to [0, 100] for display; spent and remaining
stay unclamped so overspend is still visible.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field

from finsmart.metrics.summaries import ZERO, same_month
from finsmart.models.ledger import Budget, Transaction, TransactionType

DEFAULT_WARNING_THRESHOLD = 80.0


class BudgetStatus(str, Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER = "over"


class BudgetUtilization(BaseModel):
    """Spend against one budget for one month."""

    model_config = ConfigDict(frozen=True)

    budget: Budget
    spent: Decimal
    percentage: float
    is_over: bool
    status: BudgetStatus

    @computed_field
    @property
    def remaining(self) -> Decimal:
        """Limit minus spend; negative when over budget."""
        return self.budget.limit - self.spent


def clamp_percentage(numerator: Decimal, denominator: Decimal) -> float:
    """100 * numerator / denominator, clamped to [0, 100]. A zero denominator gives 0."""
    if denominator <= 0:
        return 0.0
    ratio = float(numerator * 100 / denominator)
    return max(0.0, min(100.0, ratio))


def budget_utilization(
    budget: Budget,
    transactions: Iterable[Transaction],
    reference_period: date,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> BudgetUtilization:
    """
    Utilization of a budget in the calendar month of reference_period.

    Only expense transactions in the budget's category count.

    Args:
        budget: Budget to evaluate
        transactions: Candidate transactions (any period)
        reference_period: Any date in the month being evaluated
        warning_threshold: Percentage above which the status turns to warning

    Returns:
        BudgetUtilization with status over, warning or on_track
    """
    in_period = same_month(reference_period)
    spent = sum(
        (
            t.amount for t in transactions
            if t.type == TransactionType.EXPENSE
            and t.category == budget.category
            and in_period(t)
        ),
        ZERO,
    )

    percentage = clamp_percentage(spent, budget.limit)
    is_over = spent > budget.limit
    if is_over:
        status = BudgetStatus.OVER
    elif percentage > warning_threshold:
        status = BudgetStatus.WARNING
    else:
        status = BudgetStatus.ON_TRACK

    return BudgetUtilization(
        budget=budget,
        spent=spent,
        percentage=percentage,
        is_over=is_over,
        status=status,
    )


def budget_overview(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    reference_period: date,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> list[BudgetUtilization]:
    """One utilization per budget, in budget order."""
    transactions = tuple(transactions)
    return [
        budget_utilization(b, transactions, reference_period, warning_threshold)
        for b in budgets
    ]
