# api/app/routes/audit.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.app.dependencies import get_audit_service, get_log_filter
from api.app.schemas.logs import (
    AuditCreate,
    AuditLogResponse,
    AuditReportResponse,
    StatisticsResponse,
)
from pipeline.records import AuditEntry
from services.audit_service import AuditService
from services.reports import LogFilter

router = APIRouter(prefix="/audit", tags=["audit"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def submit_audit_entry(
    body: AuditCreate,
    audit: AuditService = Depends(get_audit_service),
):
    await audit.log(AuditEntry(**body.model_dump()))
    return {"accepted": True}


@router.get("/logs", response_model=list[AuditLogResponse])
async def list_audit_logs(
    f: LogFilter = Depends(get_log_filter),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        rows = await audit.query_logs(f)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Audit log unavailable") from exc
    return [AuditLogResponse.model_validate(row) for row in rows]


@router.get("/report", response_model=AuditReportResponse)
async def audit_report(
    f: LogFilter = Depends(get_log_filter),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        report = await audit.generate_report(f)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Audit log unavailable") from exc
    return AuditReportResponse.model_validate(report)


@router.get("/statistics", response_model=StatisticsResponse)
async def audit_statistics(
    company_id: str,
    days: int = Query(default=30, ge=1, le=3650),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        stats = await audit.get_statistics(company_id, days)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Audit log unavailable") from exc
    return StatisticsResponse.model_validate(stats)
