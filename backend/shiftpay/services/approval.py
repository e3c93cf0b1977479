# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from shiftpay.exceptions import AuthorizationError, ConflictError, ValidationError
from shiftpay.models.enums import AuditAction, AuditEntityType, IntervalStatus, NotificationKind
from shiftpay.schemas.interval import IntervalResponse, ReviewHistoryEntry, ReviewHistoryResponse
from shiftpay.services.audit import list_audit_entries, model_to_audit_dict, write_audit_log
from shiftpay.services.conflicts import Span, minutes_since_midnight
from shiftpay.services.intervals import build_interval_response, check_conflicts, get_interval_or_404
from shiftpay.services.locking import lock_owner_days
from shiftpay.services.notifications import notify
from shiftpay.services.reconciliation import allocated_payment_ids
from shiftpay.services.scope import AccessScope, scope_for

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from shiftpay.models.interval import WorkInterval
    from shiftpay.schemas.auth import Actor

logger = logging.getLogger(__name__)

_REVIEW_ACTIONS = [AuditAction.APPROVE, AuditAction.REJECT]


async def _get_reviewable_interval(
    session: AsyncSession,
    actor: Actor,
    interval_id: uuid.UUID,
) -> WorkInterval:
    """Fetch and lock an interval the actor is allowed to review.

    Employees get a 404 for anything outside their own records. Reviewer
    roles get a 403 for intervals of another company and for their own.
    """
    scope = scope_for(actor)
    review_scope = scope if not actor.is_privileged else AccessScope(actor=actor)
    interval = await get_interval_or_404(session, review_scope, interval_id, for_update=True)
    if interval.owner_id == actor.id:
        raise AuthorizationError("Workers cannot review their own intervals")
    if not scope.can_review(interval.owner_id, interval.company_id):
        raise AuthorizationError("Not authorized to review this interval")
    return interval


async def _record_review(
    session: AsyncSession,
    actor: Actor,
    interval: WorkInterval,
    new_status: IntervalStatus,
    action: AuditAction,
    now: datetime,
    reason: str | None = None,
) -> None:
    """Apply a review decision, audit it and commit."""
    before_dict = model_to_audit_dict(interval)

    interval.status = new_status.value
    interval.rejection_reason = reason
    interval.reviewed_at = now
    interval.reviewed_by = actor.id
    interval.updated_at = now

    await session.flush()

    await write_audit_log(
        session,
        company_id=interval.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.INTERVAL,
        entity_id=interval.id,
        action=action,
        before_json=before_dict,
        after_json=model_to_audit_dict(interval),
    )

    await session.commit()
    await session.refresh(interval)
    logger.info("Interval %s %s by %s", interval.id, new_status.value, actor.id)


async def approve_interval(
    session: AsyncSession,
    actor: Actor,
    interval_id: uuid.UUID,
    now: datetime,
) -> IntervalResponse:
    """Approve an interval. Approving an approved interval changes nothing.

    A REJECTED interval no longer holds its slot, so approving it again
    re-runs the overlap check against the owner's day.
    """
    interval = await _get_reviewable_interval(session, actor, interval_id)
    payments = await allocated_payment_ids(session, [interval.id])

    if interval.status == IntervalStatus.APPROVED.value:
        return build_interval_response(interval, payments.get(interval.id))

    if interval.status == IntervalStatus.REJECTED.value:
        await lock_owner_days(session, interval.owner_id, interval.calendar_date)
        await check_conflicts(
            session,
            interval.owner_id,
            interval.calendar_date,
            Span(
                start=minutes_since_midnight(interval.start_at),
                end=minutes_since_midnight(interval.end_at),
                id=interval.id,
            ),
        )

    await _record_review(session, actor, interval, IntervalStatus.APPROVED, AuditAction.APPROVE, now)
    await notify(
        NotificationKind.INTERVAL_APPROVED,
        interval.owner_id,
        interval.id,
        reviewer_id=str(actor.id),
    )
    return build_interval_response(interval, payments.get(interval.id))


async def reject_interval(
    session: AsyncSession,
    actor: Actor,
    interval_id: uuid.UUID,
    reason: str,
    now: datetime,
) -> IntervalResponse:
    """Reject an interval with a reason.

    An interval already allocated to a payment cannot be rejected.
    """
    reason = reason.strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    interval = await _get_reviewable_interval(session, actor, interval_id)
    payments = await allocated_payment_ids(session, [interval.id])
    if interval.id in payments:
        raise ConflictError("Interval is allocated to a payment", interval_ids=[interval.id])

    await _record_review(session, actor, interval, IntervalStatus.REJECTED, AuditAction.REJECT, now, reason)
    await notify(
        NotificationKind.INTERVAL_REJECTED,
        interval.owner_id,
        interval.id,
        reviewer_id=str(actor.id),
        reason=reason,
    )
    return build_interval_response(interval)


async def get_review_history(
    session: AsyncSession,
    actor: Actor,
    interval_id: uuid.UUID,
) -> ReviewHistoryResponse:
    """Return every approve and reject decision on an interval, newest first."""
    interval = await get_interval_or_404(session, scope_for(actor), interval_id)
    entries = await list_audit_entries(session, AuditEntityType.INTERVAL, interval.id, _REVIEW_ACTIONS)
    items = []
    for entry in entries:
        after = entry.after_json or {}
        status = after.get("status")
        items.append(
            ReviewHistoryEntry(
                action=entry.action,
                actor_id=entry.actor_id,
                status=IntervalStatus(status) if status else None,
                rejection_reason=after.get("rejection_reason"),
                created_at=entry.created_at,
            )
        )
    return ReviewHistoryResponse(interval_id=interval.id, items=items)
