from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Caller role supplied by the identity layer."""

    DEVELOPER = "DEVELOPER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class IntervalStatus(enum.StrEnum):
    """Approval state machine for work intervals."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentStatus(enum.StrEnum):
    """Lifecycle of a payment."""

    PENDING = "PENDING"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(enum.StrEnum):
    """How a payment was made."""

    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CASH = "CASH"
    CHECK = "CHECK"
    PIX = "PIX"
    OTHER = "OTHER"


class OverlapKind(enum.StrEnum):
    """Which overlap case fired between a candidate and an existing interval."""

    STARTS_INSIDE = "STARTS_INSIDE"
    ENDS_INSIDE = "ENDS_INSIDE"
    CONTAINS_EXISTING = "CONTAINS_EXISTING"
    CONTAINED_BY_EXISTING = "CONTAINED_BY_EXISTING"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    INTERVAL = "INTERVAL"
    PAYMENT = "PAYMENT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CONFIRM = "CONFIRM"
    CANCEL = "CANCEL"


class NotificationKind(enum.StrEnum):
    """Events handed to the notification collaborator."""

    INTERVAL_SUBMITTED = "INTERVAL_SUBMITTED"
    INTERVAL_APPROVED = "INTERVAL_APPROVED"
    INTERVAL_REJECTED = "INTERVAL_REJECTED"
    PAYMENT_CREATED = "PAYMENT_CREATED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    PAYMENT_DELETED = "PAYMENT_DELETED"
