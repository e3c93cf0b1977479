# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Literal

import sqlalchemy as sa
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from shiftpay.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from shiftpay.models.enums import AuditAction, AuditEntityType, IntervalStatus, NotificationKind
from shiftpay.models.interval import WorkInterval
from shiftpay.models.payment import PaymentAllocation
from shiftpay.schemas.interval import IntervalListResponse, IntervalResponse
from shiftpay.services.audit import model_to_audit_dict, write_audit_log
from shiftpay.services.conflicts import Span, find_conflicts, format_minutes, minutes_since_midnight
from shiftpay.services.locking import lock_owner_days
from shiftpay.services.notifications import notify_reviewers
from shiftpay.services.reconciliation import allocated_payment_ids, eligible_interval_conditions
from shiftpay.services.scope import AccessScope, scope_for
from shiftpay.services.workers import get_worker_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from shiftpay.schemas.auth import Actor
    from shiftpay.schemas.interval import CreateIntervalPayload, UpdateIntervalPayload

logger = logging.getLogger(__name__)

IntervalSort = Literal["date_desc", "date_asc", "created_desc"]

_SORT_ORDERS = {
    "date_desc": (col(WorkInterval.calendar_date).desc(), col(WorkInterval.start_at).desc()),
    "date_asc": (col(WorkInterval.calendar_date).asc(), col(WorkInterval.start_at).asc()),
    "created_desc": (col(WorkInterval.created_at).desc(),),
}


def _duration_hours(start_at: datetime, end_at: datetime) -> float:
    return (end_at - start_at).total_seconds() / 3600


def build_interval_response(interval: WorkInterval, payment_id: uuid.UUID | None = None) -> IntervalResponse:
    """Map an interval model to its response schema."""
    return IntervalResponse(
        id=interval.id,
        owner_id=interval.owner_id,
        company_id=interval.company_id,
        date=interval.calendar_date,
        start=format_minutes(minutes_since_midnight(interval.start_at)),
        end=format_minutes(minutes_since_midnight(interval.end_at)),
        start_at=interval.start_at,
        end_at=interval.end_at,
        duration_hours=interval.duration_hours,
        note=interval.note,
        project=interval.project,
        status=IntervalStatus(interval.status),
        rejection_reason=interval.rejection_reason,
        reviewed_at=interval.reviewed_at,
        reviewed_by=interval.reviewed_by,
        paid=payment_id is not None,
        payment_id=payment_id,
        created_at=interval.created_at,
        updated_at=interval.updated_at,
    )


async def get_interval_or_404(
    session: AsyncSession,
    scope: AccessScope,
    interval_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> WorkInterval:
    """Fetch an interval visible to the scope. Raises 404 otherwise."""
    query = select(WorkInterval).where(col(WorkInterval.id) == interval_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    interval = result.scalar_one_or_none()
    if interval is None or not scope.permits(interval.owner_id, interval.company_id):
        raise NotFoundError("Interval not found")
    return interval


async def check_conflicts(
    session: AsyncSession,
    owner_id: uuid.UUID,
    calendar_date: date,
    candidate: Span,
) -> None:
    """Raise 409 with the overlap report if the candidate hits the owner's day.

    The caller must already hold the day lock for (owner_id, calendar_date).
    """
    result = await session.execute(
        select(WorkInterval).where(
            col(WorkInterval.owner_id) == owner_id,
            col(WorkInterval.calendar_date) == calendar_date,
        )
    )
    existing = [Span.from_interval(i) for i in result.scalars().all()]
    conflicts = find_conflicts(candidate, existing)
    if conflicts:
        logger.info(
            "Refused interval for owner %s on %s: %d conflict(s)", owner_id, calendar_date, len(conflicts)
        )
        raise ConflictError(
            "Interval overlaps existing intervals",
            conflicts=[c.to_response().model_dump(mode="json") for c in conflicts],
        )


async def _owner_company(actor: Actor) -> uuid.UUID | None:
    worker = await get_worker_service().get_worker(actor.id)
    if worker is not None and worker.company_id is not None:
        return worker.company_id
    return actor.company_id


async def list_intervals(
    session: AsyncSession,
    actor: Actor,
    owner_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    status_filter: IntervalStatus | None = None,
    unpaid_only: bool = False,
    include_own: bool = False,
    offset: int = 0,
    limit: int = 50,
    sort: IntervalSort = "date_desc",
) -> IntervalListResponse:
    """List intervals visible to the actor with optional filters."""
    scope = scope_for(actor)
    if owner_id is not None:
        await scope.resolve_owner(owner_id)
        base_filters = [
            col(WorkInterval.owner_id) == owner_id,
            *scope.conditions(col(WorkInterval.owner_id), col(WorkInterval.company_id)),
        ]
    else:
        base_filters = scope.conditions(
            col(WorkInterval.owner_id), col(WorkInterval.company_id), include_own=include_own
        )

    if start_date is not None:
        base_filters.append(col(WorkInterval.calendar_date) >= start_date)
    if end_date is not None:
        base_filters.append(col(WorkInterval.calendar_date) <= end_date)
    if status_filter is not None:
        base_filters.append(col(WorkInterval.status) == status_filter.value)
    if unpaid_only:
        base_filters.extend(eligible_interval_conditions())

    count_result = await session.execute(select(func.count()).select_from(WorkInterval).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(WorkInterval).where(*base_filters).order_by(*_SORT_ORDERS[sort]).offset(offset).limit(limit)
    )
    intervals = list(result.scalars().all())
    payments = await allocated_payment_ids(session, [i.id for i in intervals])

    return IntervalListResponse(
        items=[build_interval_response(i, payments.get(i.id)) for i in intervals],
        total=total,
    )


async def get_interval(session: AsyncSession, actor: Actor, interval_id: uuid.UUID) -> IntervalResponse:
    """Get a single interval."""
    interval = await get_interval_or_404(session, scope_for(actor), interval_id)
    payments = await allocated_payment_ids(session, [interval.id])
    return build_interval_response(interval, payments.get(interval.id))


async def create_interval(
    session: AsyncSession,
    actor: Actor,
    payload: CreateIntervalPayload,
) -> IntervalResponse:
    """Submit a work interval for the actor.

    The owner's day is locked before the conflict check so two concurrent
    submissions for the same day cannot both pass it.
    """
    start_at = datetime.combine(payload.date, payload.start)
    end_at = datetime.combine(payload.date, payload.end)

    await lock_owner_days(session, actor.id, payload.date)
    await check_conflicts(
        session,
        actor.id,
        payload.date,
        Span(start=minutes_since_midnight(start_at), end=minutes_since_midnight(end_at)),
    )

    interval = WorkInterval(
        owner_id=actor.id,
        company_id=await _owner_company(actor),
        calendar_date=payload.date,
        start_at=start_at,
        end_at=end_at,
        duration_hours=_duration_hours(start_at, end_at),
        note=payload.note,
        project=payload.project,
        status=IntervalStatus.PENDING.value,
    )
    session.add(interval)
    await session.flush()

    await write_audit_log(
        session,
        company_id=interval.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.INTERVAL,
        entity_id=interval.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(interval),
    )

    await session.commit()
    await session.refresh(interval)

    await notify_reviewers(
        NotificationKind.INTERVAL_SUBMITTED,
        interval.company_id,
        interval.id,
        exclude_id=actor.id,
        owner_id=str(actor.id),
        date=interval.calendar_date.isoformat(),
    )
    return build_interval_response(interval)


async def update_interval(
    session: AsyncSession,
    actor: Actor,
    interval_id: uuid.UUID,
    payload: UpdateIntervalPayload,
    now: datetime,
) -> IntervalResponse:
    """Edit an interval's bounds, note or project.

    Owners may edit while PENDING; privileged roles may edit any interval in
    scope. Bounds of an interval already allocated to a payment are frozen.
    """
    scope = scope_for(actor)
    interval = await get_interval_or_404(session, scope, interval_id, for_update=True)

    if not actor.is_privileged:
        if interval.owner_id != actor.id:
            raise AuthorizationError("Not authorized to edit this interval")
        if interval.status != IntervalStatus.PENDING.value:
            raise AuthorizationError("Only pending intervals can be edited by their owner")

    payments = await allocated_payment_ids(session, [interval.id])
    payment_id = payments.get(interval.id)
    before_dict = model_to_audit_dict(interval)

    if payload.touches_bounds:
        if payment_id is not None:
            raise AuthorizationError("Date and times of a paid interval cannot be changed")

        new_date = payload.date if payload.date is not None else interval.calendar_date
        new_start = payload.start if payload.start is not None else interval.start_at.time()
        new_end = payload.end if payload.end is not None else interval.end_at.time()
        start_at = datetime.combine(new_date, new_start)
        end_at = datetime.combine(new_date, new_end)
        if end_at <= start_at:
            raise ValidationError("end must be after start")

        await lock_owner_days(session, interval.owner_id, interval.calendar_date, new_date)
        await check_conflicts(
            session,
            interval.owner_id,
            new_date,
            Span(
                start=minutes_since_midnight(start_at),
                end=minutes_since_midnight(end_at),
                id=interval.id,
            ),
        )
        # The allocation check above may be stale by now; the write itself
        # only matches while the interval is unallocated.
        moved = await session.execute(
            update(WorkInterval)
            .where(
                col(WorkInterval.id) == interval.id,
                ~sa.exists().where(col(PaymentAllocation.work_interval_id) == interval.id),
            )
            .values(
                calendar_date=new_date,
                start_at=start_at,
                end_at=end_at,
                duration_hours=_duration_hours(start_at, end_at),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount == 0:  # ty: ignore[unresolved-attribute]
            raise AuthorizationError("Date and times of a paid interval cannot be changed")
        await session.refresh(interval)

    if "note" in payload.model_fields_set:
        interval.note = payload.note
    if "project" in payload.model_fields_set:
        interval.project = payload.project
    interval.updated_at = now

    await session.flush()

    await write_audit_log(
        session,
        company_id=interval.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.INTERVAL,
        entity_id=interval.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(interval),
    )

    await session.commit()
    await session.refresh(interval)
    return build_interval_response(interval, payment_id)


async def delete_interval(session: AsyncSession, actor: Actor, interval_id: uuid.UUID) -> None:
    """Delete an unallocated interval.

    Owners may delete while PENDING; privileged roles may delete any
    interval in scope.
    """
    scope = scope_for(actor)
    interval = await get_interval_or_404(session, scope, interval_id, for_update=True)

    if not actor.is_privileged:
        if interval.owner_id != actor.id:
            raise AuthorizationError("Not authorized to delete this interval")
        if interval.status != IntervalStatus.PENDING.value:
            raise AuthorizationError("Only pending intervals can be deleted by their owner")

    payments = await allocated_payment_ids(session, [interval.id])
    if interval.id in payments:
        raise ConflictError("Interval is allocated to a payment", interval_ids=[interval.id])

    before_dict = model_to_audit_dict(interval)
    await session.delete(interval)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.info("Refused delete of interval %s: allocated concurrently", interval_id)
        raise ConflictError("Interval is allocated to a payment", interval_ids=[interval_id]) from None

    await write_audit_log(
        session,
        company_id=interval.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.INTERVAL,
        entity_id=interval.id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await session.commit()
