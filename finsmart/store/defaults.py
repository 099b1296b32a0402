"""
Seed data used when a collection has never been persisted.

Seed transactions are dated in the current month so a fresh install
shows a populated dashboard straight away.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from finsmart.models.ledger import (
    Budget,
    Category,
    Debt,
    EmergencyFund,
    Transaction,
    TransactionType,
    UserSettings,
)


def seed_transactions(today: Optional[date] = None) -> tuple[Transaction, ...]:
    """Four illustrative entries: recurring salary and rent, two one-off expenses."""
    today = today or date.today()
    return (
        Transaction(
            id="1",
            amount=Decimal("3500"),
            description="Monthly Salary",
            date=today.replace(day=1),
            category=Category.SALARY,
            type=TransactionType.INCOME,
            is_recurring=True,
        ),
        Transaction(
            id="2",
            amount=Decimal("1200"),
            description="Rent Payment",
            date=today.replace(day=3),
            category=Category.HOUSING,
            type=TransactionType.EXPENSE,
            is_recurring=True,
        ),
        Transaction(
            id="3",
            amount=Decimal("150"),
            description="Grocery Run",
            date=today.replace(day=5),
            category=Category.FOOD,
            type=TransactionType.EXPENSE,
        ),
        Transaction(
            id="4",
            amount=Decimal("60"),
            description="Gas Station",
            date=today.replace(day=7),
            category=Category.TRANSPORT,
            type=TransactionType.EXPENSE,
        ),
    )


def seed_budgets() -> tuple[Budget, ...]:
    return (
        Budget(id="b1", category=Category.FOOD, limit=Decimal("500")),
        Budget(id="b2", category=Category.HOUSING, limit=Decimal("1500")),
        Budget(id="b3", category=Category.ENTERTAINMENT, limit=Decimal("200")),
    )


def seed_debts() -> tuple[Debt, ...]:
    return ()


def default_emergency_fund() -> EmergencyFund:
    return EmergencyFund(goal_amount=Decimal("10000"), current_amount=Decimal("2000"))


def default_settings() -> UserSettings:
    return UserSettings(currency="USD", dark_mode=False, name="User")
