"""
HTTP surface tests. The routers are mounted on a bare app whose state holds
services backed by the in-memory SQLite store.
"""
from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from api.app.routes import activity, audit, health
from models.audit_log import AuditLog
from pipeline.forwarder import AuditForwarder
from services.activity_logger import ActivityLogger
from services.audit_service import AuditService


@pytest_asyncio.fixture
async def app(store):
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(activity.router, prefix="/v1")
    app.include_router(audit.router, prefix="/v1")

    audit_service = AuditService(store, flush_interval=60.0)
    app.state.audit_service = audit_service
    app.state.activity_logger = ActivityLogger(store, AuditForwarder(audit_service), flush_interval=60.0)
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health_reports_writers(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert set(body["writers"]) == {"activity", "audit"}
    assert body["writers"]["audit"]["pending"] == 0


@pytest.mark.asyncio
async def test_submit_activity_then_list(client, app):
    resp = await client.post("/v1/activity", json={
        "company_id": "co-1",
        "user_id": "u-1",
        "activity_type": "ITEM_ADDED_TO_CART",
        "description": "Added 1 x p-1 to cart",
        "metadata": {"product_id": "p-1"},
    })
    assert resp.status_code == 202

    await app.state.activity_logger.writer.flush()

    resp = await client.get("/v1/activity/logs", params={"company_id": "co-1"})
    assert resp.status_code == 200
    [row] = resp.json()
    assert row["activity_type"] == "ITEM_ADDED_TO_CART"
    assert row["severity"] == "low"
    assert row["metadata"] == {"product_id": "p-1"}


@pytest.mark.asyncio
async def test_critical_activity_is_forwarded_to_audit(client, app):
    resp = await client.post("/v1/activity", json={
        "company_id": "co-1",
        "user_id": "u-1",
        "activity_type": "SALE_COMPLETED",
        "description": "Sale completed - $52.03",
        "metadata": {"sale_id": "s-1", "amount": 52.03},
    })
    assert resp.status_code == 202

    await app.state.audit_service.writer.flush()

    resp = await client.get("/v1/audit/logs", params={"company_id": "co-1"})
    [row] = resp.json()
    assert row["action"] == "SALE_CREATE"
    assert row["severity"] == "medium"
    assert row["metadata"]["sale_id"] == "s-1"


@pytest.mark.asyncio
async def test_unknown_activity_type_rejected(client):
    resp = await client.post("/v1/activity", json={
        "company_id": "co-1",
        "user_id": "u-1",
        "activity_type": "NOT_A_THING",
        "description": "x",
    })

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_audit_statistics_and_report(client, store):
    for severity in ("critical", "high", "low"):
        await store.insert(AuditLog, {
            "company_id": "co-1",
            "user_id": "u-1",
            "action": "LOGIN",
            "description": "LOGIN attempt successful",
            "severity": severity,
        })

    resp = await client.get("/v1/audit/statistics", params={"company_id": "co-1", "days": 7})
    assert resp.status_code == 200
    stats = resp.json()
    assert (stats["total_logs"], stats["critical_events"], stats["high_severity_events"]) == (3, 1, 1)

    resp = await client.get("/v1/audit/report", params={"company_id": "co-1"})
    assert resp.status_code == 200
    report = resp.json()
    assert report["total_entries"] == 3
    assert report["summary"]["by_severity"] == {"critical": 1, "high": 1, "low": 1}


@pytest.mark.asyncio
async def test_reads_require_company(client):
    resp = await client.get("/v1/audit/logs")

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_missing_services_are_unavailable():
    app = FastAPI()
    app.include_router(audit.router, prefix="/v1")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.get("/v1/audit/statistics", params={"company_id": "co-1"})

    assert resp.status_code == 503
