"""Tests for derived metrics."""

import json

import pytest
from datetime import date
from decimal import Decimal

from finsmart.ledger import Ledger
from finsmart.metrics import (
    BudgetStatus,
    analysis_summary,
    budget_overview,
    budget_utilization,
    category_breakdown,
    chat_context,
    currency_symbol,
    dashboard_view,
    date_range,
    format_amount,
    fund_progress,
    monthly_series,
    period_summary,
    same_month,
    search_transactions,
    sort_by_date,
    total_outstanding_debt,
)
from finsmart.models.ledger import (
    Budget,
    Category,
    Debt,
    EmergencyFund,
    Snapshot,
    Transaction,
    TransactionType,
    UserSettings,
)
from finsmart.store import RecordStore


TODAY = date(2025, 6, 18)


def tx(amount, category, on, kind=TransactionType.EXPENSE, description=None, tx_id=None) -> Transaction:
    data = {
        "amount": Decimal(str(amount)),
        "description": description or f"{category.value} spend",
        "date": on,
        "category": category,
        "type": kind,
    }
    if tx_id:
        data["id"] = tx_id
    return Transaction(**data)


def seeded_snapshot() -> Snapshot:
    return RecordStore().load(today=TODAY)


class TestPeriodSummary:
    """Tests for period_summary."""

    def test_seed_month_summary(self):
        """Test the seed scenario: income 3500, expenses 1410, balance 2090."""
        snapshot = seeded_snapshot()
        summary = period_summary(snapshot.transactions, same_month(TODAY))
        assert summary.income == Decimal("3500")
        assert summary.expenses == Decimal("1410")
        assert summary.balance == Decimal("2090")

    def test_balance_is_income_minus_expenses(self):
        """Test the balance identity over an arbitrary mix."""
        txs = [
            tx("10.10", Category.FOOD, TODAY),
            tx("99.99", Category.FREELANCE, TODAY, TransactionType.INCOME),
            tx("5", Category.OTHER, TODAY, TransactionType.INCOME),
            tx("1200", Category.HOUSING, date(2024, 1, 3)),
        ]
        summary = period_summary(txs)
        assert summary.balance == summary.income - summary.expenses
        assert summary.income == Decimal("104.99")
        assert summary.expenses == Decimal("1210.10")

    def test_balance_is_serialized(self):
        dumped = period_summary(seeded_snapshot().transactions, same_month(TODAY)).model_dump()
        assert dumped["balance"] == Decimal("2090")
        assert "balance" in period_summary([]).model_dump()

    def test_predicate_filters_period(self):
        """Test that only the predicate's period is summed."""
        txs = [
            tx(100, Category.FOOD, date(2025, 6, 1)),
            tx(100, Category.FOOD, date(2024, 6, 1)),
            tx(100, Category.FOOD, date(2025, 5, 31)),
        ]
        assert period_summary(txs, same_month(TODAY)).expenses == Decimal("100")

    def test_date_range_predicate(self):
        """Test inclusive date ranges with open ends."""
        txs = [tx(1, Category.FOOD, date(2025, 1, d)) for d in (1, 10, 20)]
        assert period_summary(txs, date_range(date(2025, 1, 10))).expenses == Decimal("2")
        assert period_summary(txs, date_range(end=date(2025, 1, 10))).expenses == Decimal("2")
        assert period_summary(txs, date_range(date(2025, 1, 2), date(2025, 1, 19))).expenses == Decimal("1")

    def test_empty(self):
        """Test that no transactions sum to zero."""
        summary = period_summary([])
        assert summary.income == summary.expenses == summary.balance == Decimal("0")

    def test_other_income_counts_as_income(self):
        """Test that partition is by type, not category."""
        summary = period_summary([tx(40, Category.OTHER, TODAY, TransactionType.INCOME)])
        assert summary.income == Decimal("40")
        assert summary.expenses == Decimal("0")


class TestCategoryBreakdown:
    """Tests for category_breakdown."""

    def test_seed_breakdown(self):
        """Test the seed scenario breakdown."""
        snapshot = seeded_snapshot()
        breakdown = category_breakdown(snapshot.transactions)
        assert breakdown == {
            Category.HOUSING: Decimal("1200"),
            Category.FOOD: Decimal("150"),
            Category.TRANSPORT: Decimal("60"),
        }

    def test_total_matches_expense_sum(self):
        """Test that the breakdown sums to total expenses."""
        txs = [
            tx(10, Category.FOOD, TODAY),
            tx(15, Category.FOOD, TODAY),
            tx(7, Category.SHOPPING, TODAY),
            tx(500, Category.SALARY, TODAY, TransactionType.INCOME),
        ]
        breakdown = category_breakdown(txs)
        expense_total = sum(t.amount for t in txs if t.type == TransactionType.EXPENSE)
        assert sum(breakdown.values()) == expense_total
        assert Category.SALARY not in breakdown

    def test_first_seen_order(self):
        """Test that keys keep first-seen order by default."""
        txs = [
            tx(1, Category.SHOPPING, TODAY),
            tx(100, Category.HOUSING, TODAY),
            tx(50, Category.FOOD, TODAY),
        ]
        assert list(category_breakdown(txs)) == [Category.SHOPPING, Category.HOUSING, Category.FOOD]

    def test_sorted_by_total(self):
        """Test descending order by total."""
        txs = [
            tx(1, Category.SHOPPING, TODAY),
            tx(100, Category.HOUSING, TODAY),
            tx(50, Category.FOOD, TODAY),
        ]
        assert list(category_breakdown(txs, sort_by_total=True)) == [
            Category.HOUSING, Category.FOOD, Category.SHOPPING
        ]


class TestMonthlySeries:
    """Tests for monthly_series."""

    def test_same_month_different_years_stay_separate(self):
        """Test that May 2024 and May 2025 are distinct buckets."""
        txs = [
            tx(100, Category.FOOD, date(2025, 5, 10)),
            tx(40, Category.FOOD, date(2024, 5, 2)),
            tx(900, Category.SALARY, date(2025, 5, 1), TransactionType.INCOME),
        ]
        series = monthly_series(txs)
        assert [b.month for b in series] == ["2024-05", "2025-05"]
        assert [b.label for b in series] == ["May 2024", "May 2025"]
        assert series[0].expenses == Decimal("40")
        assert series[1].income == Decimal("900")
        assert series[1].net == Decimal("800")

    def test_chronological_order(self):
        """Test that buckets run oldest first regardless of input order."""
        txs = [
            tx(1, Category.FOOD, date(2025, 3, 1)),
            tx(1, Category.FOOD, date(2024, 12, 1)),
            tx(1, Category.FOOD, date(2025, 1, 1)),
        ]
        assert [b.month for b in monthly_series(txs)] == ["2024-12", "2025-01", "2025-03"]

    def test_empty(self):
        assert monthly_series([]) == []


class TestBudgetUtilization:
    """Tests for budget_utilization and budget_overview."""

    def test_seed_food_budget(self):
        """Test Food/500 with 150 spent is 30% and not over."""
        snapshot = seeded_snapshot()
        food = next(b for b in snapshot.budgets if b.category == Category.FOOD)
        util = budget_utilization(food, snapshot.transactions, TODAY)
        assert util.spent == Decimal("150")
        assert util.percentage == 30.0
        assert util.is_over is False
        assert util.status == BudgetStatus.ON_TRACK
        assert util.remaining == Decimal("350")

    def test_over_budget_clamps_percentage(self):
        """Test that percentage caps at 100 while spent stays raw."""
        budget = Budget(category=Category.FOOD, limit=Decimal("100"))
        util = budget_utilization(budget, [tx(250, Category.FOOD, TODAY)], TODAY)
        assert util.percentage == 100.0
        assert util.is_over is True
        assert util.status == BudgetStatus.OVER
        assert util.spent == Decimal("250")
        assert util.remaining == Decimal("-150")

    def test_exactly_at_limit_is_not_over(self):
        """Test that spending the limit exactly is a warning, not over."""
        budget = Budget(category=Category.FOOD, limit=Decimal("100"))
        util = budget_utilization(budget, [tx(100, Category.FOOD, TODAY)], TODAY)
        assert util.is_over is False
        assert util.percentage == 100.0
        assert util.status == BudgetStatus.WARNING

    def test_warning_threshold(self):
        """Test the warning band above 80%."""
        budget = Budget(category=Category.FOOD, limit=Decimal("100"))
        assert budget_utilization(budget, [tx(80, Category.FOOD, TODAY)], TODAY).status == BudgetStatus.ON_TRACK
        assert budget_utilization(budget, [tx(81, Category.FOOD, TODAY)], TODAY).status == BudgetStatus.WARNING
        assert budget_utilization(
            budget, [tx(60, Category.FOOD, TODAY)], TODAY, warning_threshold=50
        ).status == BudgetStatus.WARNING

    def test_only_counts_category_month_and_expenses(self):
        """Test filtering by category, reference month and type."""
        budget = Budget(category=Category.OTHER, limit=Decimal("200"))
        txs = [
            tx(50, Category.OTHER, TODAY),
            tx(999, Category.OTHER, TODAY, TransactionType.INCOME),
            tx(70, Category.OTHER, date(2025, 5, 30)),
            tx(30, Category.FOOD, TODAY),
        ]
        util = budget_utilization(budget, txs, TODAY)
        assert util.spent == Decimal("50")
        assert util.percentage == 25.0

    @pytest.mark.parametrize("spent", ["0", "0.01", "99.99", "5000"])
    def test_percentage_within_bounds(self, spent):
        """Test that percentage is always within [0, 100]."""
        budget = Budget(category=Category.FOOD, limit=Decimal("100"))
        txs = [tx(spent, Category.FOOD, TODAY)] if Decimal(spent) > 0 else []
        util = budget_utilization(budget, txs, TODAY)
        assert 0.0 <= util.percentage <= 100.0

    def test_overview_keeps_budget_order(self):
        """Test one utilization per budget in budget order."""
        snapshot = seeded_snapshot()
        overview = budget_overview(snapshot.budgets, snapshot.transactions, TODAY)
        assert [u.budget.category for u in overview] == [
            Category.FOOD, Category.HOUSING, Category.ENTERTAINMENT
        ]
        assert overview[1].percentage == 80.0
        assert overview[2].spent == Decimal("0")


class TestBalances:
    """Tests for debt totals and fund progress."""

    def test_total_outstanding_debt(self):
        """Test debts with remaining 5000 and 2500 total 7500."""
        debts = [
            Debt(name="Car", total_amount=Decimal("10000"), remaining_amount=Decimal("5000")),
            Debt(name="Card", total_amount=Decimal("3000"), remaining_amount=Decimal("2500")),
        ]
        assert total_outstanding_debt(debts) == Decimal("7500")

    def test_total_outstanding_debt_empty(self):
        assert total_outstanding_debt([]) == Decimal("0")

    def test_fund_over_goal(self):
        """Test goal 10000 with 12000 saved is 100% and fully funded."""
        progress = fund_progress(EmergencyFund(goal_amount=Decimal("10000"), current_amount=Decimal("12000")))
        assert progress.percentage == 100.0
        assert progress.is_fully_funded is True
        assert progress.shortfall == Decimal("0")

    def test_fund_partial(self):
        """Test the default fund is 20% funded."""
        progress = fund_progress(EmergencyFund())
        assert progress.percentage == 20.0
        assert progress.is_fully_funded is False
        assert progress.shortfall == Decimal("8000")


class TestSearchAndSort:
    """Tests for search_transactions and sort_by_date."""

    def test_sort_newest_first(self):
        txs = [
            tx(1, Category.FOOD, date(2025, 1, 5), tx_id="a"),
            tx(1, Category.FOOD, date(2025, 3, 5), tx_id="b"),
            tx(1, Category.FOOD, date(2025, 2, 5), tx_id="c"),
        ]
        assert [t.id for t in sort_by_date(txs)] == ["b", "c", "a"]
        assert [t.id for t in sort_by_date(txs, newest_first=False)] == ["a", "c", "b"]

    def test_search_matches_description_case_insensitive(self):
        snapshot = seeded_snapshot()
        assert [t.id for t in search_transactions(snapshot.transactions, "GROCERY")] == ["3"]

    def test_search_matches_category(self):
        snapshot = seeded_snapshot()
        assert [t.id for t in search_transactions(snapshot.transactions, "housing")] == ["2"]

    def test_search_results_newest_first(self):
        snapshot = seeded_snapshot()
        assert [t.id for t in search_transactions(snapshot.transactions, "")] == ["4", "3", "2", "1"]


class TestAdvisorContext:
    """Tests for the snapshot summaries sent to the advisor."""

    def test_analysis_summary_shape(self):
        """Test totals, budgets and JSON-serializability."""
        snapshot = seeded_snapshot().model_copy(update={"debts": (
            Debt(name="Car", total_amount=Decimal("10000"), remaining_amount=Decimal("5000")),
        )})
        summary = analysis_summary(snapshot)
        assert summary["totalDebt"] == 5000.0
        assert len(summary["transactions"]) == 4
        assert summary["budgets"][0] == {"id": "b1", "category": "Food", "limit": 500.0}
        json.dumps(summary)

    def test_analysis_summary_window_keeps_newest(self):
        """Test that the window keeps the newest transactions by date."""
        txs = tuple(tx(1, Category.FOOD, date(2025, 1, 1 + i), tx_id=f"t{i}") for i in range(20))
        summary = analysis_summary(Snapshot(transactions=txs), window=5)
        assert [t["id"] for t in summary["transactions"]] == ["t19", "t18", "t17", "t16", "t15"]

    def test_chat_context_shape(self):
        """Test the chat context carries debt, recent transactions and budgets."""
        context = chat_context(seeded_snapshot(), window=2)
        assert set(context) == {"totalDebt", "recentTransactions", "budgets"}
        assert context["totalDebt"] == 0.0
        assert [t["description"] for t in context["recentTransactions"]] == ["Gas Station", "Grocery Run"]
        json.dumps(context)


class TestFormatting:
    """Tests for currency formatting."""

    @pytest.mark.parametrize("code,symbol", [
        ("USD", "$"),
        ("EUR", "€"),
        ("GBP", "£"),
        ("gbp", "£"),
        ("JPY", "$"),
    ])
    def test_currency_symbol(self, code, symbol):
        assert currency_symbol(code) == symbol

    def test_format_amount(self):
        assert format_amount(Decimal("1234.5"), "USD") == "$1,234.50"
        assert format_amount(Decimal("-60"), UserSettings(currency="GBP")) == "-£60.00"
        assert format_amount(3500, "EUR") == "€3,500.00"


class TestDashboard:
    """Tests for the dashboard view and an end-to-end ledger scenario."""

    def test_seed_dashboard(self):
        view = dashboard_view(seeded_snapshot(), TODAY)
        assert view.month.balance == Decimal("2090")
        assert view.top_categories[0] == (Category.HOUSING, Decimal("1200"))
        assert view.total_debt == Decimal("0")
        assert view.emergency_fund.percentage == 20.0
        assert [t.id for t in view.recent] == ["4", "3", "2", "1"]
        assert [b.month for b in view.series] == ["2025-06"]

    def test_serialized_view_keeps_derived_totals(self):
        """Test that balance, net, remaining and shortfall survive model_dump."""
        dumped = dashboard_view(seeded_snapshot(), TODAY).model_dump()
        assert dumped["month"]["balance"] == Decimal("2090")
        assert dumped["series"][0]["net"] == Decimal("2090")
        housing = next(b for b in dumped["budgets"] if b["budget"]["category"] == Category.HOUSING)
        assert housing["remaining"] == Decimal("300")
        assert dumped["emergency_fund"]["shortfall"] == Decimal("8000")

    def test_metrics_follow_ledger_operations(self):
        """Test that metrics recomputed after mutations reflect them."""
        store = RecordStore()
        store.load(today=TODAY)
        ledger = Ledger(store)

        ledger.add_transaction({
            "amount": "400",
            "description": "Weekly shop",
            "date": TODAY,
            "category": "Food",
            "type": "EXPENSE",
        })
        ledger.add_debt({"name": "Car", "total_amount": 10000, "remaining_amount": 5000})
        ledger.add_debt({"name": "Card", "total_amount": 3000, "remaining_amount": 2500})

        snapshot = ledger.snapshot
        food = next(b for b in snapshot.budgets if b.category == Category.FOOD)
        util = budget_utilization(food, snapshot.transactions, TODAY)
        assert util.spent == Decimal("550")
        assert util.is_over is True
        assert total_outstanding_debt(snapshot.debts) == Decimal("7500")

        ledger.delete_transaction(snapshot.transactions[0].id)
        assert period_summary(ledger.snapshot.transactions, same_month(TODAY)).expenses == Decimal("1410")
