# services/inventory_realtime.py
"""
Realtime inventory watcher.

Row changes on the inventory table are fed into ``handle_change`` by whatever
listens to the database (LISTEN/NOTIFY, CDC, polling). Each change is fanned
out to change subscribers, then checked against stock thresholds; alerts are
fanned out to alert subscribers and optionally stored.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from models.inventory_alert import InventoryAlert as InventoryAlertRow
from services.log_store import LogStore

logger = logging.getLogger(__name__)

E = TypeVar("E")

OVERSTOCK_MULTIPLIER = 3


class SubscriberRegistry(Generic[E]):
    """Subscriber id -> callback. Last subscribe per id wins."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: dict[str, Callable[[E], Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def __contains__(self, subscriber_id: str) -> bool:
        with self._lock:
            return subscriber_id in self._callbacks

    def subscribe(self, subscriber_id: str, callback: Callable[[E], Any]) -> None:
        with self._lock:
            self._callbacks[subscriber_id] = callback

    def unsubscribe(self, subscriber_id: str) -> None:
        with self._lock:
            self._callbacks.pop(subscriber_id, None)

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def publish(self, event: E) -> int:
        """
        Invoke every callback synchronously. A callback that raises is logged
        and skipped; the rest still receive the event. Returns the number of
        callbacks that completed.
        """
        with self._lock:
            targets = list(self._callbacks.items())

        delivered = 0
        for subscriber_id, callback in targets:
            try:
                callback(event)
                delivered += 1
            except Exception as exc:
                logger.error("Error in %s subscriber %s: %s", self.name, subscriber_id, exc)
        return delivered


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class InventoryChangeEvent:
    type: str  # INSERT | UPDATE | DELETE
    product_id: str
    location_id: str
    quantity_change: float
    old: dict | None = None
    new: dict | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class InventoryAlert:
    product_id: str
    product_name: str
    location_id: str
    location_name: str
    current_quantity: float
    reorder_level: float
    alert_type: str  # low_stock | out_of_stock | overstock
    severity: str  # info | warning | critical

    @property
    def message(self) -> str:
        return (
            f"{self.product_name} at {self.location_name}: "
            f"{self.alert_type.replace('_', ' ')} ({self.current_quantity:g})"
        )


def evaluate_stock(record: dict) -> InventoryAlert | None:
    """Threshold check for a single inventory row; overstock wins over low stock."""
    quantity = record.get("quantity_on_hand") or 0
    reorder_level = record.get("reorder_level") or 0
    reorder_quantity = record.get("reorder_quantity") or 0

    alert_type = severity = None

    if reorder_level > 0 and quantity <= reorder_level:
        if quantity <= 0:
            alert_type, severity = "out_of_stock", "critical"
        else:
            alert_type, severity = "low_stock", "warning"

    if reorder_quantity > 0 and quantity > reorder_quantity * OVERSTOCK_MULTIPLIER:
        alert_type, severity = "overstock", "info"

    if alert_type is None:
        return None

    return InventoryAlert(
        product_id=record["product_id"],
        product_name=record.get("product_name") or record["product_id"],
        location_id=record["location_id"],
        location_name=record.get("location_name") or record["location_id"],
        current_quantity=quantity,
        reorder_level=reorder_level,
        alert_type=alert_type,
        severity=severity,
    )


class InventoryRealtimeService:
    """
    Owns the change/alert subscriber registries and the connection state.
    ``disconnect()`` clears every subscriber; reconnecting takes an explicit
    ``connect()``.
    """

    def __init__(self, store: LogStore | None = None) -> None:
        self.store = store
        self.changes: SubscriberRegistry[InventoryChangeEvent] = SubscriberRegistry("inventory change")
        self.alerts: SubscriberRegistry[InventoryAlert] = SubscriberRegistry("inventory alert")
        self.state = ConnectionState.DISCONNECTED
        self.scope: dict[str, str] = {}

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    async def connect(
        self,
        company_id: str,
        branch_id: str | None = None,
        location_id: str | None = None,
    ) -> None:
        if self.state != ConnectionState.DISCONNECTED:
            raise RuntimeError(f"Realtime inventory already {self.state.value}")

        self.state = ConnectionState.CONNECTING
        scope = {"company_id": company_id}
        if branch_id:
            scope["branch_id"] = branch_id
        if location_id:
            scope["location_id"] = location_id
        self.scope = scope
        self.state = ConnectionState.CONNECTED
        logger.info("Realtime inventory updates initialized scope=%s", scope)

    def disconnect(self) -> None:
        self.state = ConnectionState.DISCONNECTED
        self.scope = {}
        self.changes.clear()
        self.alerts.clear()
        logger.info("Realtime inventory updates stopped")

    def in_scope(self, record: dict) -> bool:
        return all(record.get(key) == value for key, value in self.scope.items())

    async def handle_change(self, payload: dict) -> InventoryChangeEvent | None:
        """
        ``payload`` carries ``eventType`` (INSERT/UPDATE/DELETE) and the
        ``new`` / ``old`` inventory rows.
        """
        if not self.is_connected:
            logger.debug("Inventory change ignored while %s", self.state.value)
            return None

        event_type = payload.get("eventType")
        new = payload.get("new") or None
        old = payload.get("old") or None

        if event_type == "INSERT" and new:
            current, change = new, new.get("quantity_on_hand") or 0
        elif event_type == "UPDATE" and new:
            current = new
            change = (new.get("quantity_on_hand") or 0) - ((old or {}).get("quantity_on_hand") or 0)
        elif event_type == "DELETE" and old:
            current, change = old, -(old.get("quantity_on_hand") or 0)
        else:
            return None

        if not self.in_scope(current):
            return None

        event = InventoryChangeEvent(
            type=event_type,
            product_id=current["product_id"],
            location_id=current["location_id"],
            quantity_change=change,
            old=old,
            new=new,
        )
        self.changes.publish(event)

        if event_type != "DELETE":
            await self.check_alerts(current)
        return event

    async def check_alerts(self, record: dict) -> InventoryAlert | None:
        alert = evaluate_stock(record)
        if alert is None:
            return None

        self.alerts.publish(alert)
        await self.store_alert(alert)
        return alert

    async def store_alert(self, alert: InventoryAlert) -> None:
        if self.store is None:
            return
        try:
            await self.store.insert(InventoryAlertRow, {
                "product_id": alert.product_id,
                "location_id": alert.location_id,
                "alert_type": alert.alert_type,
                "severity": alert.severity,
                "current_quantity": alert.current_quantity,
                "threshold_quantity": alert.reorder_level,
                "message": alert.message,
                "is_resolved": False,
            })
        except Exception as exc:
            logger.error("Error storing inventory alert: %s", exc)
