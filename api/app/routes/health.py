# api/app/routes/health.py
from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    writers = {}
    for name in ("activity_logger", "audit_service"):
        service = getattr(request.app.state, name, None)
        if service is not None:
            writers[service.writer.name] = {
                "running": service.writer.is_running,
                "pending": service.writer.pending,
                "dropped": service.writer.dropped,
                "failed": service.writer.failed,
            }
    return {"status": "ok", "service": "pos-activity-log", "writers": writers}
