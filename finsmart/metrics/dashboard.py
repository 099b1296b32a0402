"""
Dashboard View

Bundles the derived metrics the overview screen shows for one month.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from finsmart.metrics.balances import FundProgress, fund_progress, total_outstanding_debt
from finsmart.metrics.budgets import (
    DEFAULT_WARNING_THRESHOLD,
    BudgetUtilization,
    budget_overview,
)
from finsmart.metrics.summaries import (
    MonthlyBucket,
    PeriodSummary,
    category_breakdown,
    monthly_series,
    period_summary,
    same_month,
    sort_by_date,
)
from finsmart.models.ledger import Category, Snapshot, Transaction

TOP_CATEGORIES = 5
RECENT_TRANSACTIONS = 5


class DashboardView(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference_period: date
    currency: str
    month: PeriodSummary
    top_categories: list[tuple[Category, Decimal]]
    series: list[MonthlyBucket]
    budgets: list[BudgetUtilization]
    total_debt: Decimal
    emergency_fund: FundProgress
    recent: list[Transaction]


def dashboard_view(
    snapshot: Snapshot,
    reference_period: Optional[date] = None,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> DashboardView:
    """Compute the overview for the month containing reference_period (default today)."""
    reference_period = reference_period or date.today()
    in_month = same_month(reference_period)
    month_transactions = [t for t in snapshot.transactions if in_month(t)]

    breakdown = category_breakdown(month_transactions, sort_by_total=True)

    return DashboardView(
        reference_period=reference_period,
        currency=snapshot.settings.currency,
        month=period_summary(month_transactions),
        top_categories=list(breakdown.items())[:TOP_CATEGORIES],
        series=monthly_series(snapshot.transactions),
        budgets=budget_overview(
            snapshot.budgets, snapshot.transactions, reference_period, warning_threshold
        ),
        total_debt=total_outstanding_debt(snapshot.debts),
        emergency_fund=fund_progress(snapshot.emergency_fund),
        recent=sort_by_date(snapshot.transactions)[:RECENT_TRANSACTIONS],
    )
