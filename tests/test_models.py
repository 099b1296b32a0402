"""
Tests for FinSmart

Test strategy:
1. Unit tests for individual components (models, ledger, metrics)
2. Integration tests for flows (with in-memory storage and fake advisors)
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finsmart.models.advisory import (
    FALLBACK_RECOMMENDATIONS,
    FALLBACK_SUMMARY,
    DebtStrategy,
    FinancialHealthReport,
)
from finsmart.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finsmart.models.ledger import (
    CATEGORY_PARTITIONS,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    Budget,
    Category,
    CollectionKind,
    Debt,
    EmergencyFund,
    Snapshot,
    Transaction,
    TransactionType,
    UserSettings,
)


class TestLedgerModels:
    """Tests for ledger record models."""

    def test_transaction_creation(self):
        """Test Transaction model creation with defaults."""
        t = Transaction(
            amount=Decimal("42.50"),
            description="Coffee beans",
            date=date(2025, 3, 14),
        )
        assert t.id
        assert t.category == Category.OTHER
        assert t.type == TransactionType.EXPENSE
        assert t.is_recurring is False
        assert t.is_expense and not t.is_income

    def test_transaction_ids_are_unique(self):
        """Test that generated ids differ."""
        a = Transaction(amount=Decimal("1"), description="a", date=date(2025, 1, 1))
        b = Transaction(amount=Decimal("1"), description="b", date=date(2025, 1, 1))
        assert a.id != b.id

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        t = Transaction(amount=Decimal("1"), description="  Lunch  ", date=date(2025, 1, 1))
        assert t.description == "Lunch"

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Transaction(amount=Decimal("-5"), description="Refund", date=date(2025, 1, 1))

    def test_transaction_keeps_fractional_cents(self):
        """Test that amounts are stored at the precision given."""
        t = Transaction(amount=Decimal("1.005"), description="x", date=date(2025, 1, 1))
        assert t.amount == Decimal("1.005")

    def test_transaction_is_frozen(self):
        """Test that records can't be mutated in place."""
        t = Transaction(amount=Decimal("1"), description="x", date=date(2025, 1, 1))
        with pytest.raises(ValueError):
            t.amount = Decimal("2")

    def test_transaction_accepts_iso_datetime_string(self):
        """Test that stored ISO timestamps load as calendar dates."""
        t = Transaction.model_validate({
            "id": "x1",
            "amount": 10,
            "description": "Book",
            "date": "2024-05-03T10:15:00.000Z",
            "category": "Shopping",
            "type": "EXPENSE",
        })
        assert t.date == date(2024, 5, 3)

    def test_transaction_loads_camel_case_blob(self):
        """Test that blobs written with camelCase keys load unchanged."""
        t = Transaction.model_validate({
            "id": "1",
            "amount": 3500,
            "description": "Monthly Salary",
            "date": "2025-06-01",
            "category": "Salary",
            "type": "INCOME",
            "isRecurring": True,
        })
        assert t.is_recurring is True
        assert t.is_income

    def test_transaction_to_storage_uses_camel_case(self):
        """Test the JSON shape written to storage."""
        t = Transaction(
            id="t1",
            amount=Decimal("60"),
            description="Gas Station",
            date=date(2025, 6, 7),
            category=Category.TRANSPORT,
        )
        blob = t.to_storage()
        assert blob["isRecurring"] is False
        assert blob["date"] == "2025-06-07"
        assert blob["category"] == "Transport"
        assert Transaction.model_validate(blob) == t

    def test_budget_rejects_zero_limit(self):
        """Test that a budget limit must be positive."""
        with pytest.raises(ValueError):
            Budget(category=Category.FOOD, limit=Decimal("0"))

    def test_debt_camel_case_fields(self):
        """Test Debt aliases match the stored shape."""
        debt = Debt(
            name="Car Loan",
            total_amount=Decimal("10000"),
            remaining_amount=Decimal("5000"),
            interest_rate=Decimal("4.5"),
            minimum_payment=Decimal("250"),
            due_date=date(2025, 7, 1),
        )
        blob = debt.to_storage()
        assert blob["remainingAmount"] == "5000"
        assert blob["totalAmount"] == "10000"
        assert "interestRate" in blob
        assert "minimumPayment" in blob

    def test_emergency_fund_defaults(self):
        """Test EmergencyFund defaults."""
        fund = EmergencyFund()
        assert fund.goal_amount == Decimal("10000")
        assert fund.current_amount == Decimal("2000")
        assert fund.deadline is None

    def test_user_settings_defaults(self):
        """Test UserSettings defaults."""
        settings = UserSettings()
        assert settings.currency == "USD"
        assert settings.dark_mode is False
        assert settings.name == "User"

    def test_snapshot_collection_lookup(self):
        """Test that every collection kind maps to a snapshot field."""
        snapshot = Snapshot()
        assert snapshot.collection(CollectionKind.TRANSACTIONS) == ()
        assert snapshot.collection(CollectionKind.SETTINGS) == UserSettings()
        assert snapshot.collection(CollectionKind.EMERGENCY_FUND) == EmergencyFund()


class TestCategories:
    """Tests for the category enum and its partition table."""

    def test_every_category_is_partitioned(self):
        """Test that no category is missing from the partition table."""
        assert set(CATEGORY_PARTITIONS) == set(Category)
        for kinds in CATEGORY_PARTITIONS.values():
            assert kinds

    def test_category_values(self):
        """Test category values match the stored strings."""
        assert Category.WORK.value == "Work-related"
        assert Category.SALARY.value == "Salary"
        assert len(Category) == 14

    def test_expense_categories_reject_income(self):
        """Test that expense-only categories refuse income."""
        assert Category.FOOD.accepts(TransactionType.EXPENSE)
        assert not Category.FOOD.accepts(TransactionType.INCOME)

    def test_income_categories_reject_expense(self):
        """Test that income-only categories refuse expenses."""
        assert Category.SALARY.accepts(TransactionType.INCOME)
        assert not Category.SALARY.accepts(TransactionType.EXPENSE)

    def test_other_accepts_both_types(self):
        """Test that Other is the shared fallback."""
        assert Category.OTHER in EXPENSE_CATEGORIES
        assert Category.OTHER in INCOME_CATEGORIES
        assert Category.OTHER.accepts(TransactionType.INCOME)
        assert Category.OTHER.accepts(TransactionType.EXPENSE)

    def test_storage_keys(self):
        """Test the persisted key names."""
        assert CollectionKind.TRANSACTIONS.storage_key == "finsmart_transactions"
        assert CollectionKind.BUDGETS.storage_key == "finsmart_budgets"
        assert CollectionKind.DEBTS.storage_key == "finsmart_debts"
        assert CollectionKind.EMERGENCY_FUND.storage_key == "finsmart_emergency"
        assert CollectionKind.SETTINGS.storage_key == "finsmart_settings"


class TestAdvisoryModels:
    """Tests for the financial health report."""

    def test_report_accepts_camel_case(self):
        """Test that the advisor's camelCase reply parses."""
        report = FinancialHealthReport.model_validate({
            "score": 72,
            "summary": "Solid footing.",
            "recommendations": ["Cut subscriptions"],
            "debtStrategy": "Snowball",
            "debtStrategyReasoning": "Quick wins.",
        })
        assert report.debt_strategy == DebtStrategy.SNOWBALL
        assert report.is_fallback is False

    def test_report_score_bounds(self):
        """Test that score must be within 0..100."""
        with pytest.raises(ValueError):
            FinancialHealthReport(
                score=120,
                summary="x",
                debt_strategy=DebtStrategy.HYBRID,
                debt_strategy_reasoning="y",
            )

    def test_fallback_report(self):
        """Test the static fallback report."""
        report = FinancialHealthReport.fallback()
        assert report.score == 50
        assert report.summary == FALLBACK_SUMMARY
        assert report.recommendations == list(FALLBACK_RECOMMENDATIONS)
        assert report.debt_strategy == DebtStrategy.AVALANCHE
        assert report.is_fallback is True
        assert "is_fallback" not in report.model_dump()


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_ADDED,
            description="Test",
            details={"key": "value"},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "budget_added"
        assert log_dict["details"] == {"key": "value"}
        assert "event_id" in log_dict

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            description="Test error",
            error_code="corrupt_record",
            error_message="Something went wrong",
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "system_error"
        assert row[9] == "corrupt_record"
        assert row[10] == "Something went wrong"

    def test_builder_transaction_added(self):
        """Test AuditEventBuilder.transaction_added."""
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_added(
            transaction_id="t1",
            amount="150",
            category="Food",
            transaction_type="EXPENSE",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.entity_id == "t1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details["category"] == "Food"

    def test_builder_operation_rejected(self):
        """Test that rejections are warnings carrying the error code."""
        event = AuditEventBuilder.operation_rejected(
            operation="add_budget",
            error_code="conflict",
            error_message="Budget for this category already exists: Food",
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_code == "conflict"
        assert event.entity_id == "add_budget"

    def test_builder_persist_failed_is_error(self):
        """Test that persistence failures are errors."""
        event = AuditEventBuilder.persist_failed("budgets", "disk full")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
