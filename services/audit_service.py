# services/audit_service.py
"""
Audit logging service: compliance trail with buffered delivery.
"""
from __future__ import annotations

import logging
from typing import Any

from models.audit_log import AuditLog
from pipeline.queue import DEFAULT_MAX_QUEUE_SIZE, BufferedWriter
from pipeline.records import AuditEntry
from pipeline.severity import audit_severity, table_severity
from pipeline.taxonomy import AuditAction, Severity
from services import reports
from services.log_store import LogStore
from services.reports import LogFilter, LogReport, LogStatistics

logger = logging.getLogger(__name__)

SALES_TABLE = "sales"
PAYMENTS_TABLE = "payments"
INVENTORY_TABLE = "inventory"
LARGE_ADJUSTMENT_UNITS = 100


def _is_critical(entry: AuditEntry) -> bool:
    return entry.severity == Severity.CRITICAL


def data_change_action(operation: str, table_name: str) -> AuditAction | str:
    """
    ``("CREATE", "GLMERP01_users")`` -> ``USER_CREATE``. Tables without a
    matching action fall back to ``CREATE_<TABLE>``.
    """
    op = operation.upper()
    entity = table_name.rsplit("_", 1)[-1] if "_" in table_name else table_name
    entity = entity.upper()
    if entity.endswith("S"):
        entity = entity[:-1]
    try:
        return AuditAction(f"{entity}_{op}")
    except ValueError:
        return f"{op}_{table_name.upper()}"


class AuditService:
    def __init__(
        self,
        store: LogStore,
        *,
        flush_interval: float = 5.0,
        batch_size: int = 10,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        double_write: bool = True,
        default_query_limit: int = reports.DEFAULT_QUERY_LIMIT,
        report_max_entries: int = reports.REPORT_MAX_ENTRIES,
    ) -> None:
        self.store = store
        self.default_query_limit = default_query_limit
        self.report_max_entries = report_max_entries
        self.writer: BufferedWriter[AuditEntry] = BufferedWriter(
            "audit",
            self._persist,
            flush_interval=flush_interval,
            batch_size=batch_size,
            max_queue_size=max_queue_size,
            escalate=_is_critical,
            double_write=double_write,
        )

    @classmethod
    def from_settings(cls, store: LogStore, settings: Any) -> AuditService:
        return cls(
            store,
            flush_interval=settings.audit_flush_interval,
            batch_size=settings.audit_batch_size,
            max_queue_size=settings.log_queue_max_size,
            double_write=settings.escalation_double_write,
            default_query_limit=settings.default_query_limit,
            report_max_entries=settings.report_max_entries,
        )

    async def _persist(self, entry: AuditEntry) -> AuditLog:
        return await self.store.insert(AuditLog, entry.to_row())

    def start(self) -> None:
        self.writer.start()

    async def stop(self) -> None:
        await self.writer.stop(drain=True)

    # ─────────────────────────────────────────────
    # write path
    # ─────────────────────────────────────────────
    async def log(self, entry: AuditEntry) -> None:
        """Fire-and-forget; critical entries are written before returning."""
        if entry.severity is None:
            entry.severity = Severity.LOW
        await self.writer.submit(entry)

    async def log_authentication(
        self,
        user_id: str,
        company_id: str,
        action: AuditAction,
        success: bool = True,
        metadata: dict | None = None,
    ) -> None:
        action = AuditAction(action)
        await self.log(AuditEntry(
            company_id=company_id,
            user_id=user_id,
            action=action,
            severity=audit_severity(action),
            description=f"{action.value} attempt {'successful' if success else 'failed'}",
            metadata={"success": success, **(metadata or {})},
        ))

    async def log_data_change(
        self,
        company_id: str,
        user_id: str,
        table_name: str,
        record_id: str,
        operation: str,
        old_values: dict | None = None,
        new_values: dict | None = None,
        metadata: dict | None = None,
    ) -> None:
        """``operation`` is one of CREATE / UPDATE / DELETE."""
        action = data_change_action(operation, table_name)
        await self.log(AuditEntry(
            company_id=company_id,
            user_id=user_id,
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_values=old_values,
            new_values=new_values,
            severity=table_severity(table_name),
            description=f"{operation.upper()} operation on {table_name}",
            metadata=metadata or {},
        ))

    async def log_sale_transaction(
        self,
        company_id: str,
        user_id: str,
        sale_id: str,
        operation: str,
        amount: float,
        metadata: dict | None = None,
    ) -> None:
        """``operation`` is one of CREATE / UPDATE / VOID / RETURN."""
        action = AuditAction(f"SALE_{operation.upper()}")
        await self.log(AuditEntry(
            company_id=company_id,
            user_id=user_id,
            action=action,
            table_name=SALES_TABLE,
            record_id=sale_id,
            severity=audit_severity(action, SALES_TABLE),
            description=f"Sale {operation.lower()} - Amount: ${amount:.2f}",
            metadata={"amount": amount, **(metadata or {})},
        ))

    async def log_payment(
        self,
        company_id: str,
        user_id: str,
        sale_id: str,
        payment_method: str,
        amount: float,
        success: bool,
        metadata: dict | None = None,
    ) -> None:
        action = AuditAction.PAYMENT_PROCESS if success else AuditAction.PAYMENT_REFUND
        await self.log(AuditEntry(
            company_id=company_id,
            user_id=user_id,
            action=action,
            table_name=PAYMENTS_TABLE,
            record_id=sale_id,
            severity=audit_severity(action, PAYMENTS_TABLE),
            description=(
                f"Payment {'processed' if success else 'refunded'} - "
                f"{payment_method}: ${amount:.2f}"
            ),
            metadata={
                "payment_method": payment_method,
                "amount": amount,
                "success": success,
                **(metadata or {}),
            },
        ))

    async def log_inventory_change(
        self,
        company_id: str,
        user_id: str,
        product_id: str,
        location_id: str,
        quantity_change: float,
        reason: str,
        metadata: dict | None = None,
    ) -> None:
        severity = Severity.HIGH if abs(quantity_change) > LARGE_ADJUSTMENT_UNITS else Severity.MEDIUM
        sign = "+" if quantity_change > 0 else ""
        await self.log(AuditEntry(
            company_id=company_id,
            user_id=user_id,
            location_id=location_id,
            action=AuditAction.INVENTORY_ADJUSTMENT,
            table_name=INVENTORY_TABLE,
            record_id=product_id,
            severity=severity,
            description=f"Inventory adjustment: {sign}{quantity_change} units - {reason}",
            metadata={
                "location_id": location_id,
                "quantity_change": quantity_change,
                "reason": reason,
                **(metadata or {}),
            },
        ))

    async def log_security_event(
        self,
        company_id: str,
        user_id: str,
        action: AuditAction,
        description: str,
        severity: Severity | None = None,
        metadata: dict | None = None,
    ) -> None:
        await self.log(AuditEntry(
            company_id=company_id,
            user_id=user_id,
            action=action,
            description=description,
            severity=severity or audit_severity(action),
            metadata=metadata or {},
        ))

    # ─────────────────────────────────────────────
    # read path
    # ─────────────────────────────────────────────
    async def query_logs(self, f: LogFilter) -> list[AuditLog]:
        return await reports.query_logs(self.store, AuditLog, f, self.default_query_limit)

    async def generate_report(self, f: LogFilter) -> LogReport:
        return await reports.generate_report(self.store, AuditLog, f, self.report_max_entries)

    async def get_statistics(self, company_id: str, days: int = 30) -> LogStatistics:
        return await reports.get_statistics(self.store, AuditLog, company_id, days)

    async def cleanup_old_logs(self, retention_days: int) -> int:
        deleted = await reports.cleanup_old_logs(self.store, AuditLog, retention_days)
        logger.info("Audit retention sweep removed %d entries older than %d days", deleted, retention_days)
        return deleted
