# pipeline/forwarder.py
"""
Copies a curated subset of activity events into the audit trail.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pipeline.records import ActivityEntry, AuditEntry
from pipeline.severity import audit_severity
from pipeline.taxonomy import ActivityType, AuditAction

if TYPE_CHECKING:
    from services.audit_service import AuditService

logger = logging.getLogger(__name__)

CRITICAL_ACTIVITIES = frozenset({
    ActivityType.USER_LOGIN,
    ActivityType.USER_LOGOUT,
    ActivityType.SALE_COMPLETED,
    ActivityType.SALE_REFUNDED,
    ActivityType.SALE_CANCELLED,
    ActivityType.INVENTORY_ADJUSTMENT,
    ActivityType.SHIFT_STARTED,
    ActivityType.SHIFT_ENDED,
    ActivityType.ERROR_OCCURRED,
    ActivityType.PAYMENT_FAILED,
})

# Partial on purpose: critical kinds missing here (shifts) never reach the audit log.
ACTIVITY_TO_AUDIT: dict[ActivityType, AuditAction] = {
    ActivityType.USER_LOGIN: AuditAction.LOGIN,
    ActivityType.USER_LOGOUT: AuditAction.LOGOUT,
    ActivityType.SALE_COMPLETED: AuditAction.SALE_CREATE,
    ActivityType.SALE_REFUNDED: AuditAction.PAYMENT_REFUND,
    ActivityType.SALE_CANCELLED: AuditAction.SALE_VOID,
    ActivityType.INVENTORY_ADJUSTMENT: AuditAction.INVENTORY_ADJUSTMENT,
    ActivityType.ERROR_OCCURRED: AuditAction.SUSPICIOUS_ACTIVITY,
    ActivityType.PAYMENT_FAILED: AuditAction.PAYMENT_REFUND,
}


def is_critical(activity_type: ActivityType | str) -> bool:
    return activity_type in CRITICAL_ACTIVITIES


def map_to_audit_action(activity_type: ActivityType | str) -> AuditAction | None:
    return ACTIVITY_TO_AUDIT.get(activity_type)


class AuditForwarder:
    def __init__(self, audit_service: AuditService) -> None:
        self._audit = audit_service

    def build(self, entry: ActivityEntry) -> AuditEntry | None:
        if not is_critical(entry.activity_type):
            return None

        action = map_to_audit_action(entry.activity_type)
        if action is None:
            return None

        return AuditEntry(
            company_id=entry.company_id,
            branch_id=entry.branch_id,
            location_id=entry.location_id,
            user_id=entry.user_id,
            action=action,
            description=entry.description,
            metadata=dict(entry.metadata),
            severity=audit_severity(action),
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
        )

    async def forward(self, entry: ActivityEntry) -> AuditEntry | None:
        try:
            audit_entry = self.build(entry)
            if audit_entry is None:
                return None
            await self._audit.log(audit_entry)
            return audit_entry
        except Exception as exc:
            logger.error("Error forwarding activity to audit log: %s", exc)
            return None
