from models.base import Base
from models.activity_log import ActivityLog
from models.audit_log import AuditLog
from models.inventory_alert import InventoryAlert

__all__ = [
    "Base",
    "ActivityLog",
    "AuditLog",
    "InventoryAlert",
]
