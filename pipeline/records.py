# pipeline/records.py
"""
In-memory event records, owned by a writer queue until persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pipeline.taxonomy import ActivityType, AuditAction, Severity, enum_value


@dataclass
class ActivityEntry:
    company_id: str
    user_id: str
    activity_type: ActivityType | str
    description: str
    branch_id: str | None = None
    location_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    severity: Severity | str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    session_id: str | None = None

    def to_row(self) -> dict[str, Any]:
        return {
            "company_id": self.company_id,
            "branch_id": self.branch_id,
            "location_id": self.location_id,
            "user_id": self.user_id,
            "activity_type": enum_value(self.activity_type),
            "description": self.description,
            "severity": enum_value(self.severity) or Severity.LOW.value,
            "metadata_": self.metadata or None,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "session_id": self.session_id,
        }


@dataclass
class AuditEntry:
    company_id: str
    user_id: str
    action: AuditAction | str
    description: str
    branch_id: str | None = None
    location_id: str | None = None
    table_name: str | None = None
    record_id: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    severity: Severity | str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    def to_row(self) -> dict[str, Any]:
        return {
            "company_id": self.company_id,
            "branch_id": self.branch_id,
            "location_id": self.location_id,
            "user_id": self.user_id,
            "action": enum_value(self.action),
            "description": self.description,
            "severity": enum_value(self.severity) or Severity.LOW.value,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "metadata_": self.metadata or None,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
        }
