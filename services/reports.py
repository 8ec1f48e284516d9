# services/reports.py
"""
Query and report engine shared by the activity and audit logs.

Every function reads through a LogStore on demand. Filters are passed to the
store as given (no local validation); failures are logged and re-raised so
the caller can surface them.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import ColumnElement

from models.base import Base
from pipeline.taxonomy import Severity, enum_value
from services.log_store import LogStore

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 50
REPORT_MAX_ENTRIES = 1000
STATISTICS_MAX_DAYS = 30
RECENT_ACTIVITY_LIMIT = 50
PEAK_HOURS_LIMIT = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_key(value: datetime) -> str:
    return as_utc(value).date().isoformat()


# ─────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────
@dataclass
class LogFilter:
    company_id: str | None = None
    user_id: str | None = None
    kind: str | None = None
    table_name: str | None = None
    record_id: str | None = None
    severity: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int | None = None
    offset: int | None = None


@dataclass
class TimelinePoint:
    date: str
    count: int


@dataclass
class DailyCount:
    date: str
    count: int
    critical_count: int


@dataclass
class HourCount:
    hour: int
    count: int


@dataclass
class ReportSummary:
    by_kind: dict[str, int] = field(default_factory=dict)
    by_user: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)
    timeline: list[TimelinePoint] = field(default_factory=list)


@dataclass
class LogReport:
    total_entries: int
    entries: list[Any]
    summary: ReportSummary


@dataclass
class LogStatistics:
    total_logs: int = 0
    critical_events: int = 0
    high_severity_events: int = 0
    recent_activity: list[DailyCount] = field(default_factory=list)


@dataclass
class ActivitySummary:
    total_activities: int = 0
    activities_by_type: dict[str, int] = field(default_factory=dict)
    activities_by_user: dict[str, int] = field(default_factory=dict)
    recent_activities: list[Any] = field(default_factory=list)
    peak_hours: list[HourCount] = field(default_factory=list)


# ─────────────────────────────────────────────
# Filtering
# ─────────────────────────────────────────────
def build_criteria(model: type[Base], f: LogFilter) -> list[ColumnElement[bool]]:
    criteria: list[ColumnElement[bool]] = []

    if f.company_id:
        criteria.append(model.company_id == f.company_id)
    if f.user_id:
        criteria.append(model.user_id == f.user_id)
    if f.kind:
        criteria.append(getattr(model, model.KIND_FIELD) == enum_value(f.kind))
    if f.table_name and hasattr(model, "table_name"):
        criteria.append(model.table_name == f.table_name)
    if f.record_id and hasattr(model, "record_id"):
        criteria.append(model.record_id == f.record_id)
    if f.severity:
        criteria.append(model.severity == enum_value(f.severity))
    if f.date_from:
        criteria.append(model.created_at >= f.date_from)
    if f.date_to:
        criteria.append(model.created_at <= f.date_to)

    return criteria


# ─────────────────────────────────────────────
# Aggregation (pure)
# ─────────────────────────────────────────────
def summarize_report(entries: list[Any], kind_field: str) -> LogReport:
    by_kind: Counter[str] = Counter()
    by_user: Counter[str] = Counter()
    by_severity: Counter[str] = Counter()
    by_day: Counter[str] = Counter()

    for entry in entries:
        by_kind[getattr(entry, kind_field)] += 1
        by_user[entry.user_id] += 1
        by_severity[entry.severity] += 1
        by_day[day_key(entry.created_at)] += 1

    timeline = [TimelinePoint(date=d, count=c) for d, c in sorted(by_day.items())]

    return LogReport(
        total_entries=len(entries),
        entries=entries,
        summary=ReportSummary(
            by_kind=dict(by_kind),
            by_user=dict(by_user),
            by_severity=dict(by_severity),
            timeline=timeline,
        ),
    )


def summarize_statistics(entries: list[Any]) -> LogStatistics:
    critical = Severity.CRITICAL.value
    totals: Counter[str] = Counter()
    criticals: Counter[str] = Counter()

    for entry in entries:
        day = day_key(entry.created_at)
        totals[day] += 1
        if entry.severity == critical:
            criticals[day] += 1

    recent = [
        DailyCount(date=d, count=totals[d], critical_count=criticals[d])
        for d in sorted(totals, reverse=True)
    ][:STATISTICS_MAX_DAYS]

    return LogStatistics(
        total_logs=len(entries),
        critical_events=sum(1 for e in entries if e.severity == critical),
        high_severity_events=sum(1 for e in entries if e.severity == Severity.HIGH.value),
        recent_activity=recent,
    )


def summarize_activity(entries: list[Any]) -> ActivitySummary:
    """``entries`` newest first, as returned by the store."""
    by_type: Counter[str] = Counter()
    by_user: Counter[str] = Counter()
    by_hour: Counter[int] = Counter()

    for entry in entries:
        by_type[entry.activity_type] += 1
        by_user[entry.user_id] += 1
        by_hour[as_utc(entry.created_at).hour] += 1

    peak = sorted(by_hour.items(), key=lambda item: (-item[1], item[0]))[:PEAK_HOURS_LIMIT]

    return ActivitySummary(
        total_activities=len(entries),
        activities_by_type=dict(by_type),
        activities_by_user=dict(by_user),
        recent_activities=entries[:RECENT_ACTIVITY_LIMIT],
        peak_hours=[HourCount(hour=h, count=c) for h, c in peak],
    )


# ─────────────────────────────────────────────
# Read paths
# ─────────────────────────────────────────────
async def query_logs(
    store: LogStore,
    model: type[Base],
    f: LogFilter,
    default_limit: int = DEFAULT_QUERY_LIMIT,
) -> list[Any]:
    try:
        return await store.query(
            model,
            *build_criteria(model, f),
            limit=f.limit if f.limit is not None else default_limit,
            offset=f.offset,
        )
    except Exception as exc:
        logger.error("Error querying %s: %s", model.__tablename__, exc)
        raise


async def generate_report(
    store: LogStore,
    model: type[Base],
    f: LogFilter,
    max_entries: int = REPORT_MAX_ENTRIES,
) -> LogReport:
    try:
        entries = await store.query(
            model,
            *build_criteria(model, f),
            limit=max_entries,
            offset=f.offset,
        )
    except Exception as exc:
        logger.error("Error generating %s report: %s", model.__tablename__, exc)
        raise
    return summarize_report(entries, model.KIND_FIELD)


async def fetch_window(store: LogStore, model: type[Base], company_id: str, days: int) -> list[Any]:
    """All rows for ``company_id`` created within the trailing ``days``."""
    start = utcnow() - timedelta(days=days)
    try:
        return await store.query(
            model,
            model.company_id == company_id,
            model.created_at >= start,
        )
    except Exception as exc:
        logger.error("Error reading %s window: %s", model.__tablename__, exc)
        raise


async def get_statistics(store: LogStore, model: type[Base], company_id: str, days: int) -> LogStatistics:
    return summarize_statistics(await fetch_window(store, model, company_id, days))


async def cleanup_old_logs(store: LogStore, model: type[Base], retention_days: int) -> int:
    """Global retention sweep: not scoped to a company."""
    cutoff = utcnow() - timedelta(days=retention_days)
    try:
        return await store.delete_where(model, model.created_at < cutoff)
    except Exception as exc:
        logger.error("Error cleaning up %s: %s", model.__tablename__, exc)
        raise
