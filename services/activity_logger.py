# services/activity_logger.py
"""
Activity logging service: operational events from every part of the POS,
buffered to the activity log and selectively forwarded to the audit trail.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from models.activity_log import ActivityLog
from pipeline.forwarder import AuditForwarder, is_critical
from pipeline.queue import DEFAULT_MAX_QUEUE_SIZE, BufferedWriter
from pipeline.records import ActivityEntry
from pipeline.severity import activity_severity
from pipeline.taxonomy import SYSTEM_USER, ActivityType
from services import reports
from services.log_store import LogStore
from services.reports import ActivitySummary, LogFilter, LogReport, LogStatistics

logger = logging.getLogger(__name__)

ERROR_TYPES = {
    "GENERAL": ActivityType.ERROR_OCCURRED,
    "PAYMENT": ActivityType.PAYMENT_FAILED,
    "HARDWARE": ActivityType.HARDWARE_ERROR,
}


def _escalate(entry: ActivityEntry) -> bool:
    return is_critical(entry.activity_type)


def _money(amount: float | None) -> str:
    return f"${(amount or 0):.2f}"


class ActivityLogger:
    def __init__(
        self,
        store: LogStore,
        forwarder: AuditForwarder | None = None,
        *,
        flush_interval: float = 3.0,
        batch_size: int = 20,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        double_write: bool = True,
        default_query_limit: int = reports.DEFAULT_QUERY_LIMIT,
        report_max_entries: int = reports.REPORT_MAX_ENTRIES,
    ) -> None:
        self.store = store
        self.forwarder = forwarder
        self.default_query_limit = default_query_limit
        self.report_max_entries = report_max_entries
        self.writer: BufferedWriter[ActivityEntry] = BufferedWriter(
            "activity",
            self._persist,
            flush_interval=flush_interval,
            batch_size=batch_size,
            max_queue_size=max_queue_size,
            escalate=_escalate,
            double_write=double_write,
        )

    @classmethod
    def from_settings(
        cls,
        store: LogStore,
        settings: Any,
        forwarder: AuditForwarder | None = None,
    ) -> ActivityLogger:
        return cls(
            store,
            forwarder,
            flush_interval=settings.activity_flush_interval,
            batch_size=settings.activity_batch_size,
            max_queue_size=settings.log_queue_max_size,
            double_write=settings.escalation_double_write,
            default_query_limit=settings.default_query_limit,
            report_max_entries=settings.report_max_entries,
        )

    async def _persist(self, entry: ActivityEntry) -> ActivityLog:
        return await self.store.insert(ActivityLog, entry.to_row())

    def start(self) -> None:
        self.writer.start()

    async def stop(self) -> None:
        await self.writer.stop(drain=True)

    # ─────────────────────────────────────────────
    # write path
    # ─────────────────────────────────────────────
    async def log_activity(self, entry: ActivityEntry) -> None:
        if entry.severity is None:
            entry.severity = activity_severity(entry.activity_type)

        await self.writer.submit(entry)

        if self.forwarder is not None:
            await self.forwarder.forward(entry)

    async def log_user_auth(
        self,
        user_id: str,
        company_id: str,
        branch_id: str | None,
        location_id: str | None,
        action: str,
        success: bool = True,
        metadata: dict | None = None,
    ) -> None:
        """``action`` is LOGIN or LOGOUT."""
        action = action.upper()
        await self.log_activity(ActivityEntry(
            company_id=company_id,
            branch_id=branch_id,
            location_id=location_id,
            user_id=user_id,
            activity_type=ActivityType.USER_LOGIN if action == "LOGIN" else ActivityType.USER_LOGOUT,
            description=f"User {action.lower()} {'successful' if success else 'failed'}",
            metadata={"success": success, **(metadata or {})},
        ))

    async def log_sale_activity(
        self,
        user_id: str,
        company_id: str,
        branch_id: str | None,
        location_id: str | None,
        sale_id: str,
        action: str,
        amount: float | None = None,
        metadata: dict | None = None,
    ) -> None:
        """``action`` is STARTED, COMPLETED, CANCELLED or REFUNDED."""
        action = action.upper()
        descriptions = {
            "STARTED": "Sale transaction started",
            "COMPLETED": f"Sale completed - {_money(amount)}",
            "CANCELLED": "Sale cancelled",
            "REFUNDED": f"Sale refunded - {_money(amount)}",
        }
        await self.log_activity(ActivityEntry(
            company_id=company_id,
            branch_id=branch_id,
            location_id=location_id,
            user_id=user_id,
            activity_type=ActivityType(f"SALE_{action}"),
            description=descriptions[action],
            metadata={"sale_id": sale_id, "amount": amount, **(metadata or {})},
        ))

    async def log_cart_activity(
        self,
        user_id: str,
        company_id: str,
        branch_id: str | None,
        location_id: str | None,
        action: str,
        product_id: str | None = None,
        quantity: float | None = None,
        metadata: dict | None = None,
    ) -> None:
        """``action`` is ITEM_ADDED, ITEM_REMOVED or CLEARED."""
        action = action.upper()
        kinds = {
            "ITEM_ADDED": (ActivityType.ITEM_ADDED_TO_CART, f"Added {quantity} x {product_id} to cart"),
            "ITEM_REMOVED": (ActivityType.ITEM_REMOVED_FROM_CART, f"Removed {quantity} x {product_id} from cart"),
            "CLEARED": (ActivityType.CART_CLEARED, "Cart cleared"),
        }
        activity_type, description = kinds[action]
        await self.log_activity(ActivityEntry(
            company_id=company_id,
            branch_id=branch_id,
            location_id=location_id,
            user_id=user_id,
            activity_type=activity_type,
            description=description,
            metadata={"product_id": product_id, "quantity": quantity, **(metadata or {})},
        ))

    async def log_inventory_activity(
        self,
        user_id: str,
        company_id: str,
        branch_id: str | None,
        location_id: str | None,
        product_id: str,
        action: str,
        quantity_change: float | None = None,
        metadata: dict | None = None,
    ) -> None:
        """``action`` is COUNT_STARTED, COUNT_COMPLETED, ADJUSTMENT, RECEIVED or TRANSFERRED."""
        action = action.upper()
        units = abs(quantity_change or 0)
        kinds = {
            "COUNT_STARTED": (ActivityType.INVENTORY_COUNT_STARTED, f"Inventory count started for {product_id}"),
            "COUNT_COMPLETED": (ActivityType.INVENTORY_COUNT_COMPLETED, f"Inventory count completed for {product_id}"),
            "ADJUSTMENT": (ActivityType.INVENTORY_ADJUSTMENT, f"Inventory adjusted by {quantity_change} for {product_id}"),
            "RECEIVED": (ActivityType.PRODUCT_RECEIVED, f"Received {units} units of {product_id}"),
            "TRANSFERRED": (ActivityType.PRODUCT_TRANSFERRED, f"Transferred {units} units of {product_id}"),
        }
        activity_type, description = kinds[action]
        await self.log_activity(ActivityEntry(
            company_id=company_id,
            branch_id=branch_id,
            location_id=location_id,
            user_id=user_id,
            activity_type=activity_type,
            description=description,
            metadata={"product_id": product_id, "quantity_change": quantity_change, **(metadata or {})},
        ))

    async def log_shift_activity(
        self,
        user_id: str,
        company_id: str,
        branch_id: str | None,
        location_id: str | None,
        shift_id: str,
        action: str,
        metadata: dict | None = None,
    ) -> None:
        """``action`` is STARTED or ENDED."""
        action = action.upper()
        await self.log_activity(ActivityEntry(
            company_id=company_id,
            branch_id=branch_id,
            location_id=location_id,
            user_id=user_id,
            activity_type=ActivityType.SHIFT_STARTED if action == "STARTED" else ActivityType.SHIFT_ENDED,
            description=f"Shift {action.lower()}",
            metadata={"shift_id": shift_id, **(metadata or {})},
        ))

    async def log_error(
        self,
        user_id: str | None,
        company_id: str,
        branch_id: str | None,
        location_id: str | None,
        error_type: str,
        error_message: str,
        metadata: dict | None = None,
    ) -> None:
        """``error_type`` is GENERAL, PAYMENT or HARDWARE."""
        error_type = error_type.upper()
        await self.log_activity(ActivityEntry(
            company_id=company_id,
            branch_id=branch_id,
            location_id=location_id,
            user_id=user_id or SYSTEM_USER,
            activity_type=ERROR_TYPES[error_type],
            description=f"Error: {error_message}",
            metadata={"error_type": error_type, "error_message": error_message, **(metadata or {})},
        ))

    # ─────────────────────────────────────────────
    # read path
    # ─────────────────────────────────────────────
    async def get_activity_logs(self, company_id: str, f: LogFilter | None = None) -> list[ActivityLog]:
        """Company-scoped variant of ``query_logs``."""
        return await self.query_logs(replace(f or LogFilter(), company_id=company_id))

    async def get_activity_summary(self, company_id: str, days: int = 30) -> ActivitySummary:
        entries = await reports.fetch_window(self.store, ActivityLog, company_id, days)
        return reports.summarize_activity(entries)

    async def query_logs(self, f: LogFilter) -> list[ActivityLog]:
        return await reports.query_logs(self.store, ActivityLog, f, self.default_query_limit)

    async def generate_report(self, f: LogFilter) -> LogReport:
        return await reports.generate_report(self.store, ActivityLog, f, self.report_max_entries)

    async def get_statistics(self, company_id: str, days: int = 30) -> LogStatistics:
        return await reports.get_statistics(self.store, ActivityLog, company_id, days)

    async def cleanup_old_logs(self, retention_days: int) -> int:
        deleted = await reports.cleanup_old_logs(self.store, ActivityLog, retention_days)
        logger.info("Activity retention sweep removed %d entries older than %d days", deleted, retention_days)
        return deleted
