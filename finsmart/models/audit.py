"""
Audit Models for FinSmart

Every ledger mutation, persistence action and advisory call is logged.
This provides:
1. Traceability of how the ledger reached its current state
2. Debugging information when storage or the advisor misbehaves
3. A record of rejected operations and why they were rejected

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record store
    SNAPSHOT_LOADED = "snapshot_loaded"
    COLLECTION_PERSISTED = "collection_persisted"
    PERSIST_FAILED = "persist_failed"

    # Ledger operations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    BUDGET_ADDED = "budget_added"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"
    DEBT_ADDED = "debt_added"
    DEBTS_REPLACED = "debts_replaced"
    EMERGENCY_FUND_UPDATED = "emergency_fund_updated"
    SETTINGS_UPDATED = "settings_updated"
    OPERATION_REJECTED = "operation_rejected"

    # Advisory gateway
    ADVISOR_COMPLETED = "advisor_completed"
    ADVISOR_FALLBACK = "advisor_fallback"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What record or collection is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'advisor')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., an operation and its persistence)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_code, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction, correlation_id)
        event = AuditEventBuilder.operation_rejected("add_budget", error, correlation_id)
    """

    @staticmethod
    def snapshot_loaded(
        defaulted: list[str],
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Snapshot loaded ({len(defaulted)} collections defaulted)",
            details={"defaulted": defaulted, "counts": counts},
        )

    @staticmethod
    def collection_persisted(
        kind: str,
        storage_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_PERSISTED,
            entity_type="collection",
            entity_id=kind,
            correlation_id=correlation_id,
            description=f"Collection persisted: {kind}",
            details={"storage_key": storage_key},
        )

    @staticmethod
    def persist_failed(
        kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="collection",
            entity_id=kind,
            correlation_id=correlation_id,
            description=f"Failed to persist collection: {kind}",
            error_message=error_message,
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        amount: str,
        category: str,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction added: {transaction_type.lower()} {amount} ({category})",
            details={
                "amount": amount,
                "category": category,
                "type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=(
                "Transaction deleted" if existed
                else "Delete requested for unknown transaction (no-op)"
            ),
            details={"existed": existed},
            is_user_action=True,
        )

    @staticmethod
    def budget_added(
        budget_id: str,
        category: str,
        limit: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_ADDED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget added: {category} limit {limit}",
            details={"category": category, "limit": limit},
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(
        budget_id: str,
        limit: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget limit updated to {limit}",
            details={"limit": limit},
            is_user_action=True,
        )

    @staticmethod
    def budget_deleted(
        budget_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=(
                "Budget deleted" if existed
                else "Delete requested for unknown budget (no-op)"
            ),
            details={"existed": existed},
            is_user_action=True,
        )

    @staticmethod
    def debt_added(
        debt_id: str,
        name: str,
        remaining: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_ADDED,
            entity_type="debt",
            entity_id=debt_id,
            correlation_id=correlation_id,
            description=f"Debt added: {name} ({remaining} remaining)",
            details={"name": name, "remaining_amount": remaining},
            is_user_action=True,
        )

    @staticmethod
    def debts_replaced(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBTS_REPLACED,
            entity_type="debt",
            correlation_id=correlation_id,
            description=f"Debt list replaced ({count} debts)",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def emergency_fund_updated(
        goal_amount: str,
        current_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMERGENCY_FUND_UPDATED,
            entity_type="emergency_fund",
            correlation_id=correlation_id,
            description=f"Emergency fund updated: {current_amount} of {goal_amount}",
            details={"goal_amount": goal_amount, "current_amount": current_amount},
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            correlation_id=correlation_id,
            description="User settings updated",
            details={"currency": currency},
            is_user_action=True,
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            entity_id=operation,
            correlation_id=correlation_id,
            description=f"Ledger operation rejected: {operation}",
            error_code=error_code,
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def advisor_completed(
        call: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVISOR_COMPLETED,
            entity_type="advisor",
            entity_id=call,
            correlation_id=correlation_id,
            description=f"Advisor call completed: {call}",
        )

    @staticmethod
    def advisor_fallback(
        call: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVISOR_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="advisor",
            entity_id=call,
            correlation_id=correlation_id,
            description=f"Advisor unavailable, fallback used for {call}",
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
