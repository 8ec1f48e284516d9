# api/app/dependencies.py
from __future__ import annotations

from datetime import datetime

from fastapi import HTTPException, Query, Request, status

from services.activity_logger import ActivityLogger
from services.audit_service import AuditService
from services.reports import LogFilter


def get_audit_service(request: Request) -> AuditService:
    service = getattr(request.app.state, "audit_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Audit log not ready")
    return service


def get_activity_logger(request: Request) -> ActivityLogger:
    service = getattr(request.app.state, "activity_logger", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Activity log not ready")
    return service


def get_log_filter(
    company_id: str,
    user_id: str | None = None,
    kind: str | None = None,
    table_name: str | None = None,
    record_id: str | None = None,
    severity: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int | None = Query(default=None, ge=1, le=1000),
    offset: int | None = Query(default=None, ge=0),
) -> LogFilter:
    """Query-string filter; ``company_id`` is required so reads stay tenant scoped."""
    return LogFilter(
        company_id=company_id,
        user_id=user_id,
        kind=kind,
        table_name=table_name,
        record_id=record_id,
        severity=severity,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
