# api/app/schemas/logs.py
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from pipeline.taxonomy import ActivityType, AuditAction, Severity


class ActivityCreate(BaseModel):
    company_id: str
    user_id: str
    activity_type: ActivityType
    description: str
    branch_id: str | None = None
    location_id: str | None = None
    metadata: dict = Field(default_factory=dict)
    severity: Severity | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    session_id: str | None = None


class AuditCreate(BaseModel):
    company_id: str
    user_id: str
    action: AuditAction
    description: str
    branch_id: str | None = None
    location_id: str | None = None
    table_name: str | None = None
    record_id: str | None = None
    old_values: dict | None = None
    new_values: dict | None = None
    metadata: dict = Field(default_factory=dict)
    severity: Severity | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class ActivityLogResponse(BaseModel):
    id: uuid.UUID
    company_id: str
    branch_id: str | None
    location_id: str | None
    user_id: str
    activity_type: str
    description: str
    severity: str
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    company_id: str
    branch_id: str | None
    location_id: str | None
    user_id: str
    action: str
    description: str
    severity: str
    table_name: str | None
    record_id: str | None
    old_values: dict | None
    new_values: dict | None
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


class TimelinePointResponse(BaseModel):
    date: str
    count: int

    class Config:
        from_attributes = True


class DailyCountResponse(BaseModel):
    date: str
    count: int
    critical_count: int

    class Config:
        from_attributes = True


class HourCountResponse(BaseModel):
    hour: int
    count: int

    class Config:
        from_attributes = True


class ReportSummaryResponse(BaseModel):
    by_kind: dict[str, int]
    by_user: dict[str, int]
    by_severity: dict[str, int]
    timeline: list[TimelinePointResponse]

    class Config:
        from_attributes = True


class AuditReportResponse(BaseModel):
    total_entries: int
    entries: list[AuditLogResponse]
    summary: ReportSummaryResponse

    class Config:
        from_attributes = True


class StatisticsResponse(BaseModel):
    total_logs: int
    critical_events: int
    high_severity_events: int
    recent_activity: list[DailyCountResponse]

    class Config:
        from_attributes = True


class ActivitySummaryResponse(BaseModel):
    total_activities: int
    activities_by_type: dict[str, int]
    activities_by_user: dict[str, int]
    recent_activities: list[ActivityLogResponse]
    peak_hours: list[HourCountResponse]

    class Config:
        from_attributes = True
