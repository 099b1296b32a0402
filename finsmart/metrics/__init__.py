"""
Derived metrics package.

Every function here is pure: it reads a snapshot (or part of one) and
returns a fresh value. Nothing is cached or persisted.
"""

from finsmart.metrics.balances import FundProgress, fund_progress, total_outstanding_debt
from finsmart.metrics.budgets import (
    BudgetStatus,
    BudgetUtilization,
    budget_overview,
    budget_utilization,
)
from finsmart.metrics.context import analysis_summary, chat_context, recent_transactions
from finsmart.metrics.dashboard import DashboardView, dashboard_view
from finsmart.metrics.formatting import currency_symbol, format_amount
from finsmart.metrics.summaries import (
    MonthlyBucket,
    PeriodSummary,
    category_breakdown,
    date_range,
    monthly_series,
    period_summary,
    same_month,
    search_transactions,
    sort_by_date,
)

__all__ = [
    # Summaries
    "PeriodSummary",
    "MonthlyBucket",
    "period_summary",
    "same_month",
    "date_range",
    "category_breakdown",
    "monthly_series",
    "search_transactions",
    "sort_by_date",
    # Budgets
    "BudgetStatus",
    "BudgetUtilization",
    "budget_utilization",
    "budget_overview",
    # Balances
    "FundProgress",
    "fund_progress",
    "total_outstanding_debt",
    # Advisor context
    "analysis_summary",
    "chat_context",
    "recent_transactions",
    # Formatting
    "currency_symbol",
    "format_amount",
    # Dashboard
    "DashboardView",
    "dashboard_view",
]
