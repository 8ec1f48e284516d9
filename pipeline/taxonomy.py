# pipeline/taxonomy.py
"""
Closed event enumerations shared by the activity and audit pipelines.
"""
from __future__ import annotations

from enum import Enum

SYSTEM_USER = "system"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActivityType(str, Enum):
    # User
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_PROFILE_UPDATE = "USER_PROFILE_UPDATE"
    USER_PASSWORD_CHANGE = "USER_PASSWORD_CHANGE"

    # Sales
    SALE_STARTED = "SALE_STARTED"
    SALE_COMPLETED = "SALE_COMPLETED"
    SALE_CANCELLED = "SALE_CANCELLED"
    SALE_REFUNDED = "SALE_REFUNDED"
    ITEM_ADDED_TO_CART = "ITEM_ADDED_TO_CART"
    ITEM_REMOVED_FROM_CART = "ITEM_REMOVED_FROM_CART"
    CART_CLEARED = "CART_CLEARED"

    # Inventory
    INVENTORY_COUNT_STARTED = "INVENTORY_COUNT_STARTED"
    INVENTORY_COUNT_COMPLETED = "INVENTORY_COUNT_COMPLETED"
    INVENTORY_ADJUSTMENT = "INVENTORY_ADJUSTMENT"
    PRODUCT_RECEIVED = "PRODUCT_RECEIVED"
    PRODUCT_TRANSFERRED = "PRODUCT_TRANSFERRED"

    # Customers
    CUSTOMER_ADDED = "CUSTOMER_ADDED"
    CUSTOMER_UPDATED = "CUSTOMER_UPDATED"
    CUSTOMER_LOYALTY_UPDATED = "CUSTOMER_LOYALTY_UPDATED"

    # System
    SHIFT_STARTED = "SHIFT_STARTED"
    SHIFT_ENDED = "SHIFT_ENDED"
    CASH_REGISTER_OPENED = "CASH_REGISTER_OPENED"
    CASH_REGISTER_CLOSED = "CASH_REGISTER_CLOSED"
    BACKUP_CREATED = "BACKUP_CREATED"
    SYSTEM_MAINTENANCE = "SYSTEM_MAINTENANCE"

    # Errors
    ERROR_OCCURRED = "ERROR_OCCURRED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    HARDWARE_ERROR = "HARDWARE_ERROR"


class AuditAction(str, Enum):
    # Authentication & authorization
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"

    # Users
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_ROLE_CHANGE = "USER_ROLE_CHANGE"

    # Products
    PRODUCT_CREATE = "PRODUCT_CREATE"
    PRODUCT_UPDATE = "PRODUCT_UPDATE"
    PRODUCT_DELETE = "PRODUCT_DELETE"
    PRODUCT_PRICE_CHANGE = "PRODUCT_PRICE_CHANGE"

    # Inventory
    INVENTORY_ADJUSTMENT = "INVENTORY_ADJUSTMENT"
    INVENTORY_TRANSFER = "INVENTORY_TRANSFER"
    STOCK_COUNT = "STOCK_COUNT"

    # Sales & transactions
    SALE_CREATE = "SALE_CREATE"
    SALE_UPDATE = "SALE_UPDATE"
    SALE_VOID = "SALE_VOID"
    SALE_RETURN = "SALE_RETURN"
    PAYMENT_PROCESS = "PAYMENT_PROCESS"
    PAYMENT_REFUND = "PAYMENT_REFUND"

    # Customers
    CUSTOMER_CREATE = "CUSTOMER_CREATE"
    CUSTOMER_UPDATE = "CUSTOMER_UPDATE"
    CUSTOMER_DELETE = "CUSTOMER_DELETE"

    # System operations
    BACKUP_CREATE = "BACKUP_CREATE"
    BACKUP_RESTORE = "BACKUP_RESTORE"
    SYSTEM_CONFIG_CHANGE = "SYSTEM_CONFIG_CHANGE"
    DATA_EXPORT = "DATA_EXPORT"
    DATA_IMPORT = "DATA_IMPORT"

    # Security
    FAILED_LOGIN = "FAILED_LOGIN"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    DATA_ACCESS = "DATA_ACCESS"
    PERMISSION_DENIED = "PERMISSION_DENIED"


def enum_value(value: Enum | str | None) -> str | None:
    """Plain string for enum members; anything else passes through."""
    if isinstance(value, Enum):
        return value.value
    return value
