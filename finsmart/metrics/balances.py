"""Debt totals and emergency-fund progress."""

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field

from finsmart.metrics.budgets import clamp_percentage
from finsmart.metrics.summaries import ZERO
from finsmart.models.ledger import Debt, EmergencyFund


class FundProgress(BaseModel):
    """Progress of the emergency fund toward its goal."""

    model_config = ConfigDict(frozen=True)

    goal_amount: Decimal
    current_amount: Decimal
    percentage: float
    is_fully_funded: bool

    @computed_field
    @property
    def shortfall(self) -> Decimal:
        """Amount still needed; zero once funded."""
        return max(ZERO, self.goal_amount - self.current_amount)


def total_outstanding_debt(debts: Iterable[Debt]) -> Decimal:
    """Sum of remaining amounts. Zero for no debts."""
    return sum((d.remaining_amount for d in debts), ZERO)


def fund_progress(fund: EmergencyFund) -> FundProgress:
    return FundProgress(
        goal_amount=fund.goal_amount,
        current_amount=fund.current_amount,
        percentage=clamp_percentage(fund.current_amount, fund.goal_amount),
        is_fully_funded=fund.current_amount >= fund.goal_amount,
    )
