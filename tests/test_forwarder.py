"""Tests for activity -> audit forwarding."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from models.activity_log import ActivityLog
from models.audit_log import AuditLog
from pipeline.forwarder import AuditForwarder, is_critical, map_to_audit_action
from pipeline.records import ActivityEntry
from pipeline.taxonomy import ActivityType, AuditAction, Severity
from services.activity_logger import ActivityLogger
from services.audit_service import AuditService


def _entry(kind: ActivityType, **kwargs) -> ActivityEntry:
    defaults = dict(
        company_id="co-1",
        user_id="cashier-7",
        activity_type=kind,
        description=f"{kind.value} happened",
    )
    defaults.update(kwargs)
    return ActivityEntry(**defaults)


def test_critical_allowlist():
    assert is_critical(ActivityType.USER_LOGIN)
    assert is_critical(ActivityType.SHIFT_ENDED)
    assert is_critical(ActivityType.PAYMENT_FAILED)
    assert not is_critical(ActivityType.ITEM_ADDED_TO_CART)
    assert not is_critical(ActivityType.HARDWARE_ERROR)


def test_mapping_is_partial():
    assert map_to_audit_action(ActivityType.SALE_COMPLETED) == AuditAction.SALE_CREATE
    assert map_to_audit_action(ActivityType.SALE_CANCELLED) == AuditAction.SALE_VOID
    assert map_to_audit_action(ActivityType.ERROR_OCCURRED) == AuditAction.SUSPICIOUS_ACTIVITY
    assert map_to_audit_action(ActivityType.SHIFT_STARTED) is None
    assert map_to_audit_action(ActivityType.SHIFT_ENDED) is None


def test_build_uses_audit_classifier():
    forwarder = AuditForwarder(MagicMock())

    refunded = forwarder.build(_entry(ActivityType.SALE_REFUNDED))
    assert refunded.action == AuditAction.PAYMENT_REFUND
    assert refunded.severity == Severity.HIGH

    login = forwarder.build(_entry(ActivityType.USER_LOGIN))
    assert login.action == AuditAction.LOGIN
    assert login.severity == Severity.LOW


def test_build_reuses_description_and_metadata():
    forwarder = AuditForwarder(MagicMock())
    source = _entry(ActivityType.INVENTORY_ADJUSTMENT, metadata={"quantity_change": -4}, location_id="loc-2")

    built = forwarder.build(source)

    assert built.description == source.description
    assert built.metadata == {"quantity_change": -4}
    assert built.metadata is not source.metadata
    assert built.location_id == "loc-2"
    assert built.company_id == "co-1"


@pytest.mark.asyncio
async def test_sale_completed_becomes_medium_sale_create(make_store):
    store = make_store()
    audit = AuditService(store)
    activity = ActivityLogger(store, AuditForwarder(audit))

    await activity.log_sale_activity(
        "cashier-7", "co-1", None, None, sale_id="sale-99", action="COMPLETED", amount=52.03,
    )
    await audit.writer.flush()

    rows = store.rows(AuditLog)
    assert len(rows) == 1
    assert rows[0]["action"] == "SALE_CREATE"
    assert rows[0]["severity"] == "medium"
    assert "52.03" in rows[0]["description"]
    assert rows[0]["metadata_"]["sale_id"] == "sale-99"


@pytest.mark.asyncio
async def test_unmapped_critical_kind_never_reaches_audit(make_store):
    store = make_store()
    audit = AuditService(store)
    activity = ActivityLogger(store, AuditForwarder(audit))

    await activity.log_shift_activity("cashier-7", "co-1", None, None, shift_id="s-1", action="STARTED")
    await activity.writer.flush()
    await audit.writer.flush()

    assert store.rows(AuditLog) == []
    assert audit.writer.pending == 0
    assert len(store.rows(ActivityLog)) >= 1


@pytest.mark.asyncio
async def test_non_critical_kind_is_not_forwarded(make_store):
    store = make_store()
    audit = AuditService(store)
    activity = ActivityLogger(store, AuditForwarder(audit))

    await activity.log_cart_activity("cashier-7", "co-1", None, None, "ITEM_ADDED", product_id="p-1", quantity=2)
    await audit.writer.flush()

    assert store.rows(AuditLog) == []


@pytest.mark.asyncio
async def test_forward_failure_is_absorbed():
    audit = MagicMock()
    audit.log = AsyncMock(side_effect=RuntimeError("audit down"))
    forwarder = AuditForwarder(audit)

    result = await forwarder.forward(_entry(ActivityType.USER_LOGOUT))

    assert result is None
    audit.log.assert_awaited_once()
