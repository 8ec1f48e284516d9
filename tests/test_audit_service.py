"""
Tests for the audit service write path: severity assignment, escalation
and the domain helpers.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from models.audit_log import AuditLog
from pipeline.records import AuditEntry
from pipeline.taxonomy import AuditAction, Severity
from services.audit_service import AuditService, data_change_action


def _service(store, **kwargs) -> AuditService:
    return AuditService(store, flush_interval=60.0, **kwargs)


@pytest.mark.asyncio
async def test_log_defaults_to_low_severity(recording_store):
    audit = _service(recording_store)

    await audit.log(AuditEntry(
        company_id="co-1", user_id="u-1", action=AuditAction.LOGIN, description="login",
    ))
    assert recording_store.rows(AuditLog) == []

    await audit.writer.flush()
    [row] = recording_store.rows(AuditLog)
    assert row["severity"] == "low"
    assert row["action"] == "LOGIN"


@pytest.mark.asyncio
async def test_critical_security_event_written_before_return(recording_store):
    audit = _service(recording_store)

    await audit.log_security_event(
        "co-1", "u-1", AuditAction.BACKUP_RESTORE, "Database restored from backup",
    )

    rows = recording_store.rows(AuditLog)
    assert len(rows) >= 1
    assert rows[0]["severity"] == "critical"

    await audit.writer.flush()
    assert len(recording_store.rows(AuditLog)) == 2


@pytest.mark.asyncio
async def test_explicit_severity_overrides_classifier(recording_store):
    audit = _service(recording_store)

    await audit.log_security_event(
        "co-1", "u-1", AuditAction.SUSPICIOUS_ACTIVITY, "Repeated voids",
        severity=Severity.CRITICAL, metadata={"count": 7},
    )

    [row] = recording_store.rows(AuditLog)
    assert row["severity"] == "critical"
    assert row["metadata_"] == {"count": 7}


@pytest.mark.asyncio
async def test_failed_login_is_medium(recording_store):
    audit = _service(recording_store)

    await audit.log_authentication("u-1", "co-1", AuditAction.FAILED_LOGIN, success=False)
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["severity"] == "medium"
    assert row["description"] == "FAILED_LOGIN attempt failed"
    assert row["metadata_"] == {"success": False}


@pytest.mark.asyncio
async def test_sale_void(recording_store):
    audit = _service(recording_store)

    await audit.log_sale_transaction("co-1", "u-1", "sale-1", "void", 19.5)
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["action"] == "SALE_VOID"
    assert row["severity"] == "high"
    assert row["table_name"] == "sales"
    assert row["record_id"] == "sale-1"
    assert row["description"] == "Sale void - Amount: $19.50"


@pytest.mark.asyncio
async def test_data_change_on_user_table(recording_store):
    audit = _service(recording_store)

    await audit.log_data_change(
        "co-1", "u-1", "GLMERP01_users", "user-9", "create",
        new_values={"email": "a@example.com"},
    )
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["action"] == "USER_CREATE"
    assert row["severity"] == "high"
    assert row["new_values"] == {"email": "a@example.com"}
    assert row["old_values"] is None
    assert row["description"] == "CREATE operation on GLMERP01_users"


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["CREATE", "UPDATE", "DELETE"])
async def test_data_change_on_sales_table_is_high(recording_store, operation):
    audit = _service(recording_store)

    await audit.log_data_change("co-1", "u-1", "GLMERP01_sales", "s-1", operation)
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["table_name"] == "GLMERP01_sales"
    assert row["severity"] == "high"


@pytest.mark.asyncio
async def test_sale_data_change_keeps_table_tier_over_action(recording_store):
    audit = _service(recording_store)

    await audit.log_data_change("co-1", "u-1", "GLMERP01_sales", "s-1", "CREATE")
    await audit.log_sale_transaction("co-1", "u-1", "s-1", "CREATE", 12.0)
    await audit.writer.flush()

    data_change, sale = recording_store.rows(AuditLog)
    assert (data_change["action"], data_change["severity"]) == ("SALE_CREATE", "high")
    assert (sale["action"], sale["severity"]) == ("SALE_CREATE", "medium")


@pytest.mark.asyncio
async def test_data_change_on_payments_table_is_medium(recording_store):
    audit = _service(recording_store)

    await audit.log_data_change("co-1", "u-1", "GLMERP01_payments", "p-1", "UPDATE")
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["severity"] == "medium"


@pytest.mark.asyncio
async def test_data_change_on_unmapped_table(recording_store):
    audit = _service(recording_store)

    await audit.log_data_change("co-1", "u-1", "GLMERP01_widgets", "w-1", "UPDATE")
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["action"] == "UPDATE_GLMERP01_WIDGETS"
    assert row["severity"] == "low"


def test_data_change_action():
    assert data_change_action("CREATE", "GLMERP01_users") == AuditAction.USER_CREATE
    assert data_change_action("delete", "products") == AuditAction.PRODUCT_DELETE
    assert data_change_action("CREATE", "ledgers") == "CREATE_LEDGERS"


@pytest.mark.asyncio
@pytest.mark.parametrize("change, severity", [(150, "high"), (-101, "high"), (100, "medium"), (-3, "medium")])
async def test_inventory_change_severity(recording_store, change, severity):
    audit = _service(recording_store)

    await audit.log_inventory_change("co-1", "u-1", "p-1", "loc-1", change, "cycle count")
    await audit.writer.flush()

    [row] = recording_store.rows(AuditLog)
    assert row["action"] == "INVENTORY_ADJUSTMENT"
    assert row["severity"] == severity
    assert row["table_name"] == "inventory"
    assert row["location_id"] == "loc-1"


@pytest.mark.asyncio
async def test_payment_outcomes(recording_store):
    audit = _service(recording_store)

    await audit.log_payment("co-1", "u-1", "sale-1", "card", 10.0, success=True)
    await audit.log_payment("co-1", "u-1", "sale-2", "card", 10.0, success=False)
    await audit.writer.flush()

    ok, failed = recording_store.rows(AuditLog)
    assert (ok["action"], ok["severity"]) == ("PAYMENT_PROCESS", "medium")
    assert (failed["action"], failed["severity"]) == ("PAYMENT_REFUND", "high")
    assert failed["description"] == "Payment refunded - card: $10.00"


@pytest.mark.asyncio
async def test_write_failures_never_reach_caller(make_store):
    store = make_store(fail_times=10)
    audit = _service(store)

    await audit.log_security_event("co-1", "u-1", AuditAction.BACKUP_RESTORE, "restore")
    await audit.writer.flush()

    assert store.rows(AuditLog) == []


def test_from_settings(recording_store):
    settings = SimpleNamespace(
        audit_flush_interval=2.5,
        audit_batch_size=7,
        log_queue_max_size=100,
        escalation_double_write=False,
        default_query_limit=25,
        report_max_entries=500,
    )

    audit = AuditService.from_settings(recording_store, settings)

    assert audit.writer.flush_interval == 2.5
    assert audit.writer.batch_size == 7
    assert audit.writer.max_queue_size == 100
    assert audit.writer.double_write is False
    assert audit.default_query_limit == 25
    assert audit.report_max_entries == 500
