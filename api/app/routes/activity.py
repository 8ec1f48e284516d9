# api/app/routes/activity.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.app.dependencies import get_activity_logger, get_log_filter
from api.app.schemas.logs import ActivityCreate, ActivityLogResponse, ActivitySummaryResponse
from pipeline.records import ActivityEntry
from services.activity_logger import ActivityLogger
from services.reports import LogFilter

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def submit_activity(
    body: ActivityCreate,
    activity: ActivityLogger = Depends(get_activity_logger),
):
    await activity.log_activity(ActivityEntry(**body.model_dump()))
    return {"accepted": True}


@router.get("/logs", response_model=list[ActivityLogResponse])
async def list_activity_logs(
    f: LogFilter = Depends(get_log_filter),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    try:
        rows = await activity.query_logs(f)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Activity log unavailable") from exc
    return [ActivityLogResponse.model_validate(row) for row in rows]


@router.get("/summary", response_model=ActivitySummaryResponse)
async def activity_summary(
    company_id: str,
    days: int = Query(default=30, ge=1, le=3650),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    try:
        summary = await activity.get_activity_summary(company_id, days)
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Activity log unavailable") from exc
    return ActivitySummaryResponse.model_validate(summary)
