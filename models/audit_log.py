# models/audit_log.py
from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.activity_log import JSONType
from models.base import Base, CreatedAtMixin, UUIDPrimaryKey


class AuditLog(Base, UUIDPrimaryKey, CreatedAtMixin):
    """Compliance trail entry, usually tied to a data mutation."""

    __tablename__ = "audit_logs"

    KIND_FIELD = "action"

    company_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    branch_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="low", index=True)

    # Affected entity
    table_name: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    record_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    old_values: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
