# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from shiftpay.models.enums import NotificationKind, Role
from shiftpay.services.workers import get_worker_service

logger = logging.getLogger(__name__)

_REVIEWER_ROLES = (Role.ADMIN, Role.MANAGER)


class Notification(BaseModel):
    """An event handed to the notification collaborator."""

    kind: NotificationKind
    recipient_id: uuid.UUID
    related_id: uuid.UUID | None = None
    data: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class NotificationService(Protocol):
    """Interface for notification delivery."""

    async def send(self, notification: Notification) -> None:
        """Deliver one notification."""
        ...


class InMemoryNotificationService:
    """Stub that records notifications instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)

    def for_recipient(self, recipient_id: uuid.UUID) -> list[Notification]:
        return [n for n in self.sent if n.recipient_id == recipient_id]


_notification_service: NotificationService = InMemoryNotificationService()


def get_notification_service() -> NotificationService:
    """Return the active notification collaborator."""
    return _notification_service


def set_notification_service(service: NotificationService) -> None:
    """Override the service (for testing or production wiring)."""
    global _notification_service
    _notification_service = service


async def notify(
    kind: NotificationKind,
    recipient_id: uuid.UUID | None,
    related_id: uuid.UUID | None = None,
    **data: Any,
) -> None:
    """Send one notification after the triggering transaction has committed.

    Delivery failures are logged and never undo the committed change.
    """
    if recipient_id is None:
        return
    notification = Notification(kind=kind, recipient_id=recipient_id, related_id=related_id, data=data)
    try:
        await get_notification_service().send(notification)
    except Exception:
        logger.exception("Failed to deliver %s notification to %s", kind.value, recipient_id)


async def notify_reviewers(
    kind: NotificationKind,
    company_id: uuid.UUID | None,
    related_id: uuid.UUID,
    exclude_id: uuid.UUID | None = None,
    **data: Any,
) -> None:
    """Notify every ADMIN and MANAGER of a company."""
    if company_id is None:
        return
    workers = await get_worker_service().list_workers(company_id)
    for worker in workers:
        if worker.role in _REVIEWER_ROLES and worker.id != exclude_id:
            await notify(kind, worker.id, related_id, **data)
