# models/inventory_alert.py
from __future__ import annotations

from sqlalchemy import Boolean, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class InventoryAlert(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "inventory_alerts"

    product_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    location_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    alert_type: Mapped[str] = mapped_column(String(32), nullable=False)  # low_stock | out_of_stock | overstock
    severity: Mapped[str] = mapped_column(String(16), nullable=False)  # info | warning | critical
    current_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    threshold_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
