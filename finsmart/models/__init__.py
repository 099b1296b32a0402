"""
Data Models Package

This package contains all Pydantic models used in FinSmart.
All data flowing through the ledger must conform to these schemas.
"""

from finsmart.models.ledger import (
    CATEGORY_PARTITIONS,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    STORAGE_KEYS,
    Budget,
    Category,
    CollectionKind,
    Debt,
    EmergencyFund,
    Snapshot,
    Transaction,
    TransactionType,
    UserSettings,
    new_record_id,
)
from finsmart.models.advisory import (
    DebtStrategy,
    FinancialHealthReport,
)
from finsmart.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CATEGORY_PARTITIONS",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "STORAGE_KEYS",
    "Budget",
    "Category",
    "CollectionKind",
    "Debt",
    "EmergencyFund",
    "Snapshot",
    "Transaction",
    "TransactionType",
    "UserSettings",
    "new_record_id",
    # Advisory models
    "DebtStrategy",
    "FinancialHealthReport",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
