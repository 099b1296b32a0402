"""
Main Orchestrator for FinSmart

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger (load → validated mutation → flush pending collections)
2. Advisor (snapshot → context summary → advisory gateway → fallback)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The ledger never performs I/O; only flush() writes to storage
- A rejected operation is audited and re-raised, never swallowed
- A failed write leaves the collection pending so it can be retried
- Advisor failures never reach the caller

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar, Union
from uuid import UUID

import structlog

from finsmart.agents import ASK_FALLBACK, EMPTY_REPLY_FALLBACK, AdvisoryGateway
from finsmart.audit import AuditLogger, create_correlation_id
from finsmart.config import get_settings, validate_all_settings
from finsmart.ledger import Ledger, LedgerError
from finsmart.metrics import (
    DashboardView,
    analysis_summary,
    chat_context,
    dashboard_view,
)
from finsmart.metrics.budgets import DEFAULT_WARNING_THRESHOLD
from finsmart.metrics.context import DEFAULT_ANALYSIS_WINDOW, DEFAULT_CHAT_WINDOW
from finsmart.models.advisory import FinancialHealthReport
from finsmart.models.audit import AuditEvent, AuditEventBuilder
from finsmart.models.ledger import (
    Budget,
    Category,
    CollectionKind,
    Debt,
    EmergencyFund,
    Snapshot,
    Transaction,
    UserSettings,
)
from finsmart.services.storage import (
    AuditStorageInterface,
    CorruptRecordError,
    InMemoryRecordStorage,
    JsonFileRecordStorage,
    RecordStorageInterface,
    StorageError,
)
from finsmart.store import RecordStore

logger = structlog.get_logger(__name__)

ResultT = TypeVar("ResultT")


class LedgerFlow:
    """
    Orchestrates ledger operations against a storage backend.

    Flow for every mutation:
    1. Ledger validates and swaps the collection (marks it pending)
    2. The mutation is audited
    3. Pending collections are flushed to storage (if auto_flush)

    A LedgerError in step 1 is audited as a warning and re-raised;
    nothing is flushed.
    """

    def __init__(
        self,
        record_storage: Optional[RecordStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        store: Optional[RecordStore] = None,
        auto_flush: bool = True,
        warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
    ):
        self._record_storage = record_storage
        self._audit_logger = audit_logger
        self._store = store or RecordStore()
        self._ledger = Ledger(self._store)
        self._auto_flush = auto_flush
        self._warning_threshold = warning_threshold

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def snapshot(self) -> Snapshot:
        return self._store.snapshot

    def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _apply(
        self,
        operation: str,
        action: Callable[[], ResultT],
        correlation_id: UUID,
    ) -> ResultT:
        """Run a ledger operation, auditing and re-raising a rejection."""
        try:
            return action()
        except LedgerError as e:
            self._audit(AuditEventBuilder.operation_rejected(
                operation=operation,
                error_code=e.code,
                error_message=e.message,
                correlation_id=correlation_id,
            ))
            raise

    def _after_mutation(self, correlation_id: UUID) -> None:
        if self._auto_flush:
            self.flush(correlation_id)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(
        self,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Snapshot:
        """
        Load the snapshot from storage, defaulting absent collections.

        Raises:
            CorruptRecordError: A stored blob can't be decoded
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            snapshot = self._store.load(self._record_storage, today=today)
        except CorruptRecordError as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="corrupt_record",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._audit(AuditEventBuilder.snapshot_loaded(
            defaulted=sorted(kind.value for kind in self._store.pending),
            counts={
                "transactions": len(snapshot.transactions),
                "budgets": len(snapshot.budgets),
                "debts": len(snapshot.debts),
            },
            correlation_id=correlation_id,
        ))
        return snapshot

    def flush(self, correlation_id: Optional[UUID] = None) -> list[CollectionKind]:
        """
        Write every pending collection to storage.

        Returns the kinds written. Without a storage backend nothing is
        written and the kinds stay pending.

        Raises:
            StorageError: A write failed. That kind (and any not yet
                attempted) stays pending.
        """
        if self._record_storage is None:
            return []

        correlation_id = correlation_id or create_correlation_id()
        written = []

        # Enum order keeps writes deterministic
        for kind in [k for k in CollectionKind if k in self._store.pending]:
            try:
                self._record_storage.write(kind.storage_key, self._store.export(kind))
            except Exception as e:
                self._audit(AuditEventBuilder.persist_failed(
                    kind=kind.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                ))
                if isinstance(e, StorageError):
                    raise
                raise StorageError(f"Failed to persist {kind.value}: {e}") from e

            self._store.mark_persisted(kind)
            written.append(kind)
            self._audit(AuditEventBuilder.collection_persisted(
                kind=kind.value,
                storage_key=kind.storage_key,
                correlation_id=correlation_id,
            ))

        return written

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        transaction: Union[Transaction, Mapping[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, ...]:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "add_transaction",
            lambda: self._ledger.add_transaction(transaction),
            correlation_id,
        )

        added = updated[0]
        self._audit(AuditEventBuilder.transaction_added(
            transaction_id=added.id,
            amount=str(added.amount),
            category=added.category.value,
            transaction_type=added.type.value,
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, ...]:
        correlation_id = correlation_id or create_correlation_id()
        before = self._store.snapshot.transactions
        updated = self._apply(
            "delete_transaction",
            lambda: self._ledger.delete_transaction(transaction_id),
            correlation_id,
        )

        self._audit(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            existed=len(updated) != len(before),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def add_budget(
        self,
        category: Union[Category, str],
        limit: Union[Decimal, int, float, str],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Budget, ...]:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "add_budget",
            lambda: self._ledger.add_budget(category, limit),
            correlation_id,
        )

        added = updated[-1]
        self._audit(AuditEventBuilder.budget_added(
            budget_id=added.id,
            category=added.category.value,
            limit=str(added.limit),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    def update_budget_limit(
        self,
        budget_id: str,
        limit: Union[Decimal, int, float, str],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Budget, ...]:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "update_budget_limit",
            lambda: self._ledger.update_budget_limit(budget_id, limit),
            correlation_id,
        )

        changed = next(b for b in updated if b.id == budget_id)
        self._audit(AuditEventBuilder.budget_updated(
            budget_id=budget_id,
            limit=str(changed.limit),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    def delete_budget(
        self,
        budget_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Budget, ...]:
        correlation_id = correlation_id or create_correlation_id()
        before = self._store.snapshot.budgets
        updated = self._apply(
            "delete_budget",
            lambda: self._ledger.delete_budget(budget_id),
            correlation_id,
        )

        self._audit(AuditEventBuilder.budget_deleted(
            budget_id=budget_id,
            existed=len(updated) != len(before),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------

    def add_debt(
        self,
        debt: Union[Debt, Mapping[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Debt, ...]:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "add_debt",
            lambda: self._ledger.add_debt(debt),
            correlation_id,
        )

        added = updated[-1]
        self._audit(AuditEventBuilder.debt_added(
            debt_id=added.id,
            name=added.name,
            remaining=str(added.remaining_amount),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    def replace_debts(
        self,
        debts: Iterable[Union[Debt, Mapping[str, Any]]],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Debt, ...]:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "replace_debts",
            lambda: self._ledger.replace_debts(debts),
            correlation_id,
        )

        self._audit(AuditEventBuilder.debts_replaced(
            count=len(updated),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    # -------------------------------------------------------------------------
    # Singletons
    # -------------------------------------------------------------------------

    def update_emergency_fund(
        self,
        fund: Union[EmergencyFund, Mapping[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> EmergencyFund:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "update_emergency_fund",
            lambda: self._ledger.update_emergency_fund(fund),
            correlation_id,
        )

        self._audit(AuditEventBuilder.emergency_fund_updated(
            goal_amount=str(updated.goal_amount),
            current_amount=str(updated.current_amount),
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    def update_settings(
        self,
        settings: Union[UserSettings, Mapping[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> UserSettings:
        correlation_id = correlation_id or create_correlation_id()
        updated = self._apply(
            "update_settings",
            lambda: self._ledger.update_settings(settings),
            correlation_id,
        )

        self._audit(AuditEventBuilder.settings_updated(
            currency=updated.currency,
            correlation_id=correlation_id,
        ))
        self._after_mutation(correlation_id)
        return updated

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def dashboard(self, reference_period: Optional[date] = None) -> DashboardView:
        """Derived metrics for the month containing reference_period."""
        return dashboard_view(
            self._store.snapshot,
            reference_period=reference_period,
            warning_threshold=self._warning_threshold,
        )


class AdvisorFlow:
    """
    Orchestrates calls to the advisory gateway.

    Each call works on the snapshot it is given, so concurrent requests
    never share mutable state. With no gateway configured (missing API
    key) every call returns its fallback immediately.
    """

    def __init__(
        self,
        gateway: Optional[AdvisoryGateway] = None,
        audit_logger: Optional[AuditLogger] = None,
        analysis_window: int = DEFAULT_ANALYSIS_WINDOW,
        chat_window: int = DEFAULT_CHAT_WINDOW,
    ):
        self._gateway = gateway
        self._audit_logger = audit_logger
        self._analysis_window = analysis_window
        self._chat_window = chat_window

    @property
    def is_available(self) -> bool:
        return self._gateway is not None

    def _audit_outcome(self, call: str, fell_back: bool, correlation_id: UUID) -> None:
        if not self._audit_logger:
            return
        if fell_back:
            self._audit_logger.log(AuditEventBuilder.advisor_fallback(call, correlation_id))
        else:
            self._audit_logger.log(AuditEventBuilder.advisor_completed(call, correlation_id))

    async def suggest_category(
        self,
        description: str,
        amount: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Category]:
        """
        Suggest a category for a transaction being entered.

        Returns None when the advisor is unavailable; the caller keeps
        whatever category the user picked.
        """
        correlation_id = correlation_id or create_correlation_id()
        category = None
        if self._gateway is not None:
            category = await self._gateway.categorize(description, amount)

        self._audit_outcome("categorize", category is None, correlation_id)
        return category

    async def health_report(
        self,
        snapshot: Snapshot,
        correlation_id: Optional[UUID] = None,
    ) -> FinancialHealthReport:
        correlation_id = correlation_id or create_correlation_id()
        if self._gateway is None:
            report = FinancialHealthReport.fallback()
        else:
            report = await self._gateway.analyze(
                snapshot.transactions,
                snapshot.debts,
                snapshot.budgets,
                window=self._analysis_window,
            )

        self._audit_outcome("analyze", report.is_fallback, correlation_id)
        return report

    async def ask(
        self,
        question: str,
        snapshot: Snapshot,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Answer a free-form question using the snapshot's chat context."""
        correlation_id = correlation_id or create_correlation_id()
        if self._gateway is None:
            reply = ASK_FALLBACK
        else:
            reply = await self._gateway.ask(question, chat_context(snapshot, window=self._chat_window))

        self._audit_outcome("ask", reply in (ASK_FALLBACK, EMPTY_REPLY_FALLBACK), correlation_id)
        return reply

    def analysis_payload(self, snapshot: Snapshot) -> dict:
        """The summary a health analysis would send, for inspection."""
        return analysis_summary(snapshot, window=self._analysis_window)


def create_app_components(
    use_storage: bool = True,
    use_advisor: bool = True,
) -> tuple[LedgerFlow, AdvisorFlow]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize the configured storage backend.
                    Set to False to keep everything in memory.
        use_advisor: Whether to configure the advisory gateway.

    Returns:
        (ledger_flow, advisor_flow)
    """
    settings = get_settings()
    report = validate_all_settings()
    for name in ("gemini", "storage", "google_sheets", "app"):
        if not report[name]:
            logger.info("settings_section_unavailable", section=name, error=report[f"{name}_error"])

    app_settings = settings.app

    record_storage: Optional[RecordStorageInterface] = None
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage:
        storage_settings = settings.storage
        try:
            if storage_settings.backend == "sheets":
                from finsmart.services.storage.google_sheets import (
                    GoogleSheetsAuditStorage,
                    GoogleSheetsClient,
                    GoogleSheetsRecordStorage,
                )

                sheets_client = GoogleSheetsClient()
                record_storage = GoogleSheetsRecordStorage(sheets_client)
                audit_storage = GoogleSheetsAuditStorage(sheets_client)
            elif storage_settings.backend == "json":
                record_storage = JsonFileRecordStorage(storage_settings.data_dir)
            else:
                record_storage = InMemoryRecordStorage()
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e), backend=storage_settings.backend)
            record_storage = InMemoryRecordStorage()
            audit_storage = None
    else:
        record_storage = InMemoryRecordStorage()

    audit_logger = AuditLogger(audit_storage)

    gateway = None
    if use_advisor and report["gemini"]:
        try:
            gateway = AdvisoryGateway(settings.gemini)
        except Exception as e:
            logger.warning("advisor_not_configured", error=str(e))

    ledger_flow = LedgerFlow(
        record_storage=record_storage,
        audit_logger=audit_logger,
        warning_threshold=app_settings.budget_warning_threshold,
    )

    advisor_flow = AdvisorFlow(
        gateway=gateway,
        audit_logger=audit_logger,
        analysis_window=app_settings.analysis_window,
        chat_window=app_settings.chat_window,
    )

    return ledger_flow, advisor_flow
