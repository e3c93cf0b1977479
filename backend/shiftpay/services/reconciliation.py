# ruff: noqa: TC003
from __future__ import annotations

import logging
import math
import uuid
from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import TYPE_CHECKING, Literal

import sqlalchemy as sa
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from shiftpay.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from shiftpay.models.enums import (
    AuditAction,
    AuditEntityType,
    IntervalStatus,
    NotificationKind,
    PaymentMethod,
    PaymentStatus,
)
from shiftpay.models.interval import WorkInterval
from shiftpay.models.payment import Payment, PaymentAllocation
from shiftpay.schemas.payment import AllocationResponse, PaymentListResponse, PaymentResponse
from shiftpay.services.audit import model_to_audit_dict, write_audit_log
from shiftpay.services.notifications import notify
from shiftpay.services.scope import AccessScope, scope_for

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

    from shiftpay.schemas.auth import Actor
    from shiftpay.schemas.payment import CreatePaymentPayload, UpdatePaymentPayload

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
_ZERO = Decimal("0.00")

_PAYEE_FIELDS = {"status", "confirmed_at"}
_CONFIRMABLE = (PaymentStatus.PENDING.value, PaymentStatus.AWAITING_CONFIRMATION.value)

PaymentSort = Literal["issue_desc", "issue_asc", "created_desc"]

_SORT_ORDERS = {
    "issue_desc": (col(Payment.issue_date).desc(), col(Payment.created_at).desc()),
    "issue_asc": (col(Payment.issue_date).asc(), col(Payment.created_at).asc()),
    "created_desc": (col(Payment.created_at).desc(),),
}

# ---------------------------------------------------------------------------
# Eligibility and allocation
# ---------------------------------------------------------------------------


def eligible_interval_conditions(
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[ColumnElement[bool]]:
    """Conditions selecting intervals that are approved and not yet paid.

    Interval listing, the worker balance and reconciliation all use this one
    predicate so they always agree on what "unpaid" means.
    """
    conditions: list[ColumnElement[bool]] = [
        col(WorkInterval.status) == IntervalStatus.APPROVED.value,
        ~sa.exists().where(col(PaymentAllocation.work_interval_id) == col(WorkInterval.id)),
    ]
    if start_date is not None:
        conditions.append(col(WorkInterval.calendar_date) >= start_date)
    if end_date is not None:
        conditions.append(col(WorkInterval.calendar_date) <= end_date)
    return conditions


async def allocated_payment_ids(
    session: AsyncSession,
    interval_ids: Sequence[uuid.UUID],
) -> dict[uuid.UUID, uuid.UUID]:
    """Map each allocated interval id to the payment that holds it."""
    if not interval_ids:
        return {}
    result = await session.execute(
        select(col(PaymentAllocation.work_interval_id), col(PaymentAllocation.payment_id)).where(
            col(PaymentAllocation.work_interval_id).in_(list(interval_ids))
        )
    )
    return {row[0]: row[1] for row in result.all()}


def _hours(value: float) -> Decimal:
    return Decimal(str(value))


def amount_for_hours(hours: float, hourly_rate: Decimal | None) -> Decimal:
    """Hours times the hourly rate, rounded to cents. No rate means zero."""
    if hourly_rate is None:
        return _ZERO
    return (_hours(hours) * hourly_rate).quantize(CENT, rounding=ROUND_HALF_UP)


def allocate_amount(amount: Decimal, hours: Sequence[float]) -> list[Decimal]:
    """Split amount across intervals in proportion to their hours.

    Every share is first rounded down to whole cents. The cents left over go
    one at a time to the shares with the largest remainders, later
    intervals winning ties. Shares are never negative and always sum to
    amount exactly. Zero total hours allocates zero to every interval.
    """
    if not hours:
        return []
    weights = [Fraction(_hours(h)) for h in hours]
    total_weight = sum(weights)
    if total_weight <= 0:
        return [_ZERO for _ in hours]

    cents = int(amount / CENT)
    exact = [cents * weight / total_weight for weight in weights]
    shares = [math.floor(value) for value in exact]
    by_remainder = sorted(range(len(shares)), key=lambda i: (exact[i] - shares[i], i), reverse=True)
    for index in by_remainder[: cents - sum(shares)]:
        shares[index] += 1
    return [Decimal(share) * CENT for share in shares]


def _build_payment_response(
    payment: Payment,
    rows: Sequence[tuple[PaymentAllocation, WorkInterval]],
) -> PaymentResponse:
    """Map a payment and its allocations to the response schema."""
    allocations = [
        AllocationResponse(
            interval_id=interval.id,
            date=interval.calendar_date,
            duration_hours=interval.duration_hours,
            allocated_amount=allocation.allocated_amount,
        )
        for allocation, interval in sorted(rows, key=lambda r: (r[1].calendar_date, r[1].start_at))
    ]
    return PaymentResponse(
        id=payment.id,
        payee_id=payment.payee_id,
        company_id=payment.company_id,
        creator_id=payment.creator_id,
        amount=payment.amount,
        issue_date=payment.issue_date,
        period_start=payment.period_start,
        period_end=payment.period_end,
        payment_method=PaymentMethod(payment.payment_method),
        reference=payment.reference,
        description=payment.description,
        status=PaymentStatus(payment.status),
        confirmed_at=payment.confirmed_at,
        receipt_url=payment.receipt_url,
        total_hours=sum(a.duration_hours for a in allocations),
        allocations=allocations,
        created_at=payment.created_at,
        updated_at=payment.updated_at,
    )


async def _load_allocations(
    session: AsyncSession,
    payment_ids: Sequence[uuid.UUID],
) -> dict[uuid.UUID, list[tuple[PaymentAllocation, WorkInterval]]]:
    """Fetch allocations with their intervals, grouped by payment."""
    grouped: dict[uuid.UUID, list[tuple[PaymentAllocation, WorkInterval]]] = defaultdict(list)
    if not payment_ids:
        return grouped
    result = await session.execute(
        select(PaymentAllocation, WorkInterval)
        .join(WorkInterval, col(WorkInterval.id) == col(PaymentAllocation.work_interval_id))
        .where(col(PaymentAllocation.payment_id).in_(list(payment_ids)))
    )
    for allocation, interval in result.all():
        grouped[allocation.payment_id].append((allocation, interval))
    return grouped


async def _get_payment_or_404(
    session: AsyncSession,
    scope: AccessScope,
    payment_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Payment:
    """Fetch a payment visible to the scope. Raises 404 otherwise."""
    query = select(Payment).where(col(Payment.id) == payment_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    payment = result.scalar_one_or_none()
    if payment is None or not scope.permits(payment.payee_id, payment.company_id):
        raise NotFoundError("Payment not found")
    return payment


async def _payment_response(session: AsyncSession, payment: Payment) -> PaymentResponse:
    allocations = await _load_allocations(session, [payment.id])
    return _build_payment_response(payment, allocations.get(payment.id, []))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_payment(
    session: AsyncSession,
    actor: Actor,
    payload: CreatePaymentPayload,
    now: datetime,
) -> PaymentResponse:
    """Reconcile approved intervals into a new payment.

    Flow:
    1. Resolve the payee within the actor's scope
    2. Resolve and lock every requested interval
    3. Drop intervals that are not APPROVED
    4. Refuse intervals already allocated to a payment
    5. Compute the amount and split it across the intervals
    6. Insert payment and allocations; a lost race hits the unique
       constraint on work_interval_id
    7. Audit, commit, notify the payee
    """
    if not actor.is_privileged:
        raise AuthorizationError("Only administrators and managers can create payments")
    scope = scope_for(actor)

    # 1. Payee.
    payee = await scope.resolve_owner(payload.payee_id)
    if payee is None:
        raise NotFoundError("Worker not found")

    # 2. Intervals.
    result = await session.execute(
        select(WorkInterval).where(col(WorkInterval.id).in_(payload.interval_ids)).with_for_update()
    )
    intervals = {
        i.id: i for i in result.scalars().all() if scope.permits(i.owner_id, i.company_id)
    }
    missing = [i for i in payload.interval_ids if i not in intervals]
    if missing:
        raise NotFoundError(f"Intervals not found: {', '.join(str(i) for i in missing)}")
    if any(i.owner_id != payee.id for i in intervals.values()):
        raise ValidationError("All intervals must belong to the payee")

    # 3. Approved only, in request order.
    candidates = [intervals[i] for i in payload.interval_ids]
    eligible = [i for i in candidates if i.status == IntervalStatus.APPROVED.value]
    if len(eligible) < len(candidates):
        logger.info(
            "Payment for %s: skipping %d interval(s) that are not approved", payee.id, len(candidates) - len(eligible)
        )
    if not eligible:
        raise ValidationError("No eligible intervals: none of the selected intervals are approved")

    # 4. Already paid.
    eligible_ids = [i.id for i in eligible]
    already_paid = await allocated_payment_ids(session, eligible_ids)
    if already_paid:
        raise ConflictError(
            "Some intervals are already allocated to a payment",
            interval_ids=[i for i in eligible_ids if i in already_paid],
        )

    # 5. Amount and allocations.
    hours = [i.duration_hours for i in eligible]
    if payload.amount_override is not None:
        amount = payload.amount_override.quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        amount = amount_for_hours(sum(hours), payee.hourly_rate)
    if amount <= 0:
        raise ValidationError("Payment amount must be positive; set an hourly rate or supply amount_override")
    shares = allocate_amount(amount, hours)

    # 6. Insert.
    payment = Payment(
        payee_id=payee.id,
        company_id=payee.company_id,
        creator_id=actor.id,
        amount=amount,
        issue_date=payload.issue_date or now.date(),
        period_start=payload.period_start,
        period_end=payload.period_end,
        payment_method=payload.payment_method.value,
        reference=payload.reference,
        description=payload.description,
        status=PaymentStatus.PENDING.value,
    )
    session.add(payment)
    allocations = [
        PaymentAllocation(payment_id=payment.id, work_interval_id=interval.id, allocated_amount=share)
        for interval, share in zip(eligible, shares, strict=True)
    ]
    session.add_all(allocations)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raced = await allocated_payment_ids(session, eligible_ids)
        logger.warning("Lost allocation race for payee %s on %d interval(s)", payee.id, len(eligible_ids))
        raise ConflictError(
            "Some intervals were allocated to another payment concurrently",
            interval_ids=[i for i in eligible_ids if i in raced] or eligible_ids,
        ) from None

    # 7. Audit, commit, notify.
    after_dict = model_to_audit_dict(payment)
    after_dict["interval_ids"] = [str(i) for i in eligible_ids]
    await write_audit_log(
        session,
        company_id=payment.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.PAYMENT,
        entity_id=payment.id,
        action=AuditAction.CREATE,
        after_json=after_dict,
    )

    await session.commit()
    await session.refresh(payment)
    logger.info("Created payment %s for %s: %s over %d interval(s)", payment.id, payee.id, amount, len(eligible))

    await notify(
        NotificationKind.PAYMENT_CREATED,
        payment.payee_id,
        payment.id,
        amount=str(payment.amount),
    )
    return _build_payment_response(payment, list(zip(allocations, eligible, strict=True)))


async def get_payment(session: AsyncSession, actor: Actor, payment_id: uuid.UUID) -> PaymentResponse:
    """Get a single payment with its allocations."""
    payment = await _get_payment_or_404(session, scope_for(actor), payment_id)
    return await _payment_response(session, payment)


async def list_payments(
    session: AsyncSession,
    actor: Actor,
    payee_id: uuid.UUID | None = None,
    status_filter: PaymentStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
    sort: PaymentSort = "issue_desc",
) -> PaymentListResponse:
    """List payments visible to the actor with optional filters."""
    scope = scope_for(actor)
    base_filters = scope.conditions(col(Payment.payee_id), col(Payment.company_id))
    if payee_id is not None:
        await scope.resolve_owner(payee_id)
        base_filters.append(col(Payment.payee_id) == payee_id)
    if status_filter is not None:
        base_filters.append(col(Payment.status) == status_filter.value)
    if start_date is not None:
        base_filters.append(col(Payment.issue_date) >= start_date)
    if end_date is not None:
        base_filters.append(col(Payment.issue_date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(Payment).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Payment).where(*base_filters).order_by(*_SORT_ORDERS[sort]).offset(offset).limit(limit)
    )
    payments = list(result.scalars().all())
    allocations = await _load_allocations(session, [p.id for p in payments])

    return PaymentListResponse(
        items=[_build_payment_response(p, allocations.get(p.id, [])) for p in payments],
        total=total,
    )


async def update_payment(
    session: AsyncSession,
    actor: Actor,
    payment_id: uuid.UUID,
    payload: UpdatePaymentPayload,
    now: datetime,
) -> PaymentResponse:
    """Advance a payment's status or correct its metadata.

    The payee may only confirm receipt (PENDING or AWAITING_CONFIRMATION to
    COMPLETED). Privileged roles may set any status, except that CANCELLED
    is terminal, and may correct receipt_url and creator_id.
    """
    scope = scope_for(actor)
    payment = await _get_payment_or_404(session, scope, payment_id, for_update=True)

    fields = payload.provided_fields()
    if not fields:
        raise ValidationError("No changes supplied")

    before_dict = model_to_audit_dict(payment)
    confirmed_by_payee = False

    if not actor.is_privileged:
        if payment.payee_id != actor.id:
            raise AuthorizationError("Not authorized to update this payment")
        if not fields <= _PAYEE_FIELDS or payload.status != PaymentStatus.COMPLETED:
            raise AuthorizationError("Payees may only confirm receipt of a payment")
        if payment.status not in _CONFIRMABLE:
            raise ValidationError(f"A {payment.status} payment cannot be confirmed")
        payment.status = PaymentStatus.COMPLETED.value
        payment.confirmed_at = payload.confirmed_at or now
        action = AuditAction.CONFIRM
        confirmed_by_payee = True
    else:
        action = AuditAction.UPDATE
        if "status" in fields:
            if payload.status is None:
                raise ValidationError("status cannot be null")
            new_status = payload.status
            if payment.status == PaymentStatus.CANCELLED.value and new_status != PaymentStatus.CANCELLED:
                raise ValidationError("A cancelled payment cannot change status")
            payment.status = new_status.value
            if new_status == PaymentStatus.COMPLETED:
                payment.confirmed_at = payload.confirmed_at or payment.confirmed_at or now
                action = AuditAction.CONFIRM
            else:
                payment.confirmed_at = None
                if new_status == PaymentStatus.CANCELLED:
                    action = AuditAction.CANCEL
        elif "confirmed_at" in fields:
            if payment.status != PaymentStatus.COMPLETED.value:
                raise ValidationError("confirmed_at can only be set on a completed payment")
            payment.confirmed_at = payload.confirmed_at
        if "receipt_url" in fields:
            payment.receipt_url = str(payload.receipt_url) if payload.receipt_url is not None else None
        if "creator_id" in fields:
            payment.creator_id = payload.creator_id

    payment.updated_at = now
    await session.flush()

    await write_audit_log(
        session,
        company_id=payment.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.PAYMENT,
        entity_id=payment.id,
        action=action,
        before_json=before_dict,
        after_json=model_to_audit_dict(payment),
    )

    await session.commit()
    await session.refresh(payment)

    if confirmed_by_payee:
        await notify(NotificationKind.PAYMENT_CONFIRMED, payment.creator_id, payment.id, payee_id=str(actor.id))
    return await _payment_response(session, payment)


async def delete_payment(session: AsyncSession, actor: Actor, payment_id: uuid.UUID) -> None:
    """Delete a payment and release its intervals for future reconciliation."""
    scope = scope_for(actor)
    payment = await _get_payment_or_404(session, scope, payment_id, for_update=True)
    if not actor.is_privileged:
        raise AuthorizationError("Only administrators and managers can delete payments")

    allocations = await _load_allocations(session, [payment.id])
    before_dict = model_to_audit_dict(payment)
    before_dict["interval_ids"] = [str(interval.id) for _, interval in allocations.get(payment.id, [])]

    await session.execute(delete(PaymentAllocation).where(col(PaymentAllocation.payment_id) == payment.id))
    await session.delete(payment)
    await session.flush()

    await write_audit_log(
        session,
        company_id=payment.company_id,
        actor_id=actor.id,
        entity_type=AuditEntityType.PAYMENT,
        entity_id=payment.id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    await session.commit()
    logger.info("Deleted payment %s, released %d interval(s)", payment.id, len(before_dict["interval_ids"]))

    await notify(NotificationKind.PAYMENT_DELETED, payment.payee_id, payment.id, amount=before_dict["amount"])
