# models/activity_log.py
from __future__ import annotations

from sqlalchemy import JSON, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, CreatedAtMixin, UUIDPrimaryKey

JSONType = JSON().with_variant(JSONB(), "postgresql")


class ActivityLog(Base, UUIDPrimaryKey, CreatedAtMixin):
    """Append-only operational event. Rows are inserted and deleted, never updated."""

    __tablename__ = "activity_logs"

    KIND_FIELD = "activity_type"

    company_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    branch_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # "system" when no human actor

    activity_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="low", index=True)  # low | medium | high | critical
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
