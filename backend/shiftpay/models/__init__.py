from sqlmodel import SQLModel

from shiftpay.models.audit import AuditLog
from shiftpay.models.base import TimestampMixin, UUIDBase
from shiftpay.models.enums import (
    AuditAction,
    AuditEntityType,
    IntervalStatus,
    NotificationKind,
    OverlapKind,
    PaymentMethod,
    PaymentStatus,
    Role,
)
from shiftpay.models.interval import IntervalDayLock, WorkInterval
from shiftpay.models.payment import Payment, PaymentAllocation

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "IntervalDayLock",
    "IntervalStatus",
    "NotificationKind",
    "OverlapKind",
    "Payment",
    "PaymentAllocation",
    "PaymentMethod",
    "PaymentStatus",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "WorkInterval",
]
