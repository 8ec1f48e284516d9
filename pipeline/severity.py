# pipeline/severity.py
"""
Severity classification for both pipelines.

Pure and total: every input maps to a Severity, unknown inputs map to LOW.
The audit rule is the single source of truth for anything that lands in the
audit trail, including forwarded activity events.
"""
from __future__ import annotations

from pipeline.taxonomy import ActivityType, AuditAction, Severity

# Entity tiers, matched against the un-prefixed table name.
CRITICAL_TABLES = frozenset({"users", "companies", "sales"})
SENSITIVE_TABLES = frozenset({"inventory", "payments", "customers"})

# Actions whose severity does not depend on the affected table.
ACTION_SEVERITY: dict[AuditAction, Severity] = {
    AuditAction.LOGIN: Severity.LOW,
    AuditAction.LOGOUT: Severity.LOW,
    AuditAction.FAILED_LOGIN: Severity.MEDIUM,
    AuditAction.PERMISSION_DENIED: Severity.MEDIUM,
    AuditAction.SUSPICIOUS_ACTIVITY: Severity.HIGH,
    AuditAction.PERMISSION_CHANGE: Severity.HIGH,
    AuditAction.USER_ROLE_CHANGE: Severity.HIGH,
    AuditAction.SALE_CREATE: Severity.MEDIUM,
    AuditAction.SALE_UPDATE: Severity.MEDIUM,
    AuditAction.SALE_VOID: Severity.HIGH,
    AuditAction.SALE_RETURN: Severity.HIGH,
    AuditAction.PAYMENT_PROCESS: Severity.MEDIUM,
    AuditAction.PAYMENT_REFUND: Severity.HIGH,
    AuditAction.INVENTORY_ADJUSTMENT: Severity.MEDIUM,
    AuditAction.BACKUP_RESTORE: Severity.CRITICAL,
}

HIGH_SEVERITY_ACTIVITIES = frozenset({
    ActivityType.ERROR_OCCURRED,
    ActivityType.PAYMENT_FAILED,
    ActivityType.HARDWARE_ERROR,
    ActivityType.SALE_REFUNDED,
    ActivityType.SALE_CANCELLED,
})


def table_matches(table_name: str, names: frozenset[str]) -> bool:
    """True for ``users`` as well as prefixed forms like ``GLMERP01_users``."""
    t = table_name.strip().lower()
    return any(t == name or t.endswith("_" + name) for name in names)


def audit_severity(action: AuditAction | str, table_name: str | None = None) -> Severity:
    override = ACTION_SEVERITY.get(action)  # str-valued enum: plain strings hit too
    if override is not None:
        return override

    if table_name:
        return table_severity(table_name)

    return Severity.LOW


def table_severity(table_name: str) -> Severity:
    """Entity tier of a mutated table, regardless of the action taken on it."""
    if table_matches(table_name, CRITICAL_TABLES):
        return Severity.HIGH
    if table_matches(table_name, SENSITIVE_TABLES):
        return Severity.MEDIUM
    return Severity.LOW


def activity_severity(activity_type: ActivityType | str) -> Severity:
    return Severity.HIGH if activity_type in HIGH_SEVERITY_ACTIVITIES else Severity.LOW
