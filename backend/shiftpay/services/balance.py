# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from shiftpay.exceptions import NotFoundError
from shiftpay.models.enums import IntervalStatus, PaymentStatus
from shiftpay.models.interval import WorkInterval
from shiftpay.models.payment import Payment, PaymentAllocation
from shiftpay.schemas.balance import UnpaidIntervalResponse, WorkerBalanceResponse
from shiftpay.services.reconciliation import amount_for_hours, eligible_interval_conditions
from shiftpay.services.scope import scope_for

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from shiftpay.schemas.auth import Actor


async def get_worker_balance(
    session: AsyncSession,
    actor: Actor,
    worker_id: uuid.UUID,
    start_date: date | None = None,
    end_date: date | None = None,
) -> WorkerBalanceResponse:
    """Compare what a worker is owed for approved hours with what was paid.

    total_paid counts allocations of COMPLETED payments on intervals in the
    date range, so it lines up with the hours it pays for.
    """
    scope = scope_for(actor)
    worker = await scope.resolve_owner(worker_id)
    if worker is None:
        raise NotFoundError("Worker not found")

    interval_filters = [
        col(WorkInterval.owner_id) == worker_id,
        *scope.conditions(col(WorkInterval.owner_id), col(WorkInterval.company_id)),
    ]
    date_filters = []
    if start_date is not None:
        date_filters.append(col(WorkInterval.calendar_date) >= start_date)
    if end_date is not None:
        date_filters.append(col(WorkInterval.calendar_date) <= end_date)

    approved_result = await session.execute(
        select(func.coalesce(func.sum(col(WorkInterval.duration_hours)), 0.0)).where(
            *interval_filters,
            *date_filters,
            col(WorkInterval.status) == IntervalStatus.APPROVED.value,
        )
    )
    total_approved_hours = float(approved_result.scalar_one())

    unpaid_result = await session.execute(
        select(WorkInterval)
        .where(*interval_filters, *eligible_interval_conditions(start_date, end_date))
        .order_by(col(WorkInterval.calendar_date), col(WorkInterval.start_at))
    )
    unpaid = list(unpaid_result.scalars().all())
    unpaid_hours = sum(i.duration_hours for i in unpaid)

    paid_result = await session.execute(
        select(func.coalesce(func.sum(col(PaymentAllocation.allocated_amount)), 0))
        .join(WorkInterval, col(WorkInterval.id) == col(PaymentAllocation.work_interval_id))
        .join(Payment, col(Payment.id) == col(PaymentAllocation.payment_id))
        .where(
            *interval_filters,
            *date_filters,
            col(Payment.status) == PaymentStatus.COMPLETED.value,
        )
    )
    total_paid = Decimal(str(paid_result.scalar_one())).quantize(Decimal("0.01"))

    total_amount_due = amount_for_hours(total_approved_hours, worker.hourly_rate)

    return WorkerBalanceResponse(
        worker_id=worker_id,
        hourly_rate=worker.hourly_rate,
        start_date=start_date,
        end_date=end_date,
        total_approved_hours=total_approved_hours,
        total_amount_due=total_amount_due,
        total_paid=total_paid,
        balance=total_amount_due - total_paid,
        paid_hours=total_approved_hours - unpaid_hours,
        unpaid_hours=unpaid_hours,
        unpaid_intervals=[
            UnpaidIntervalResponse(
                id=i.id,
                date=i.calendar_date,
                duration_hours=i.duration_hours,
                estimated_amount=amount_for_hours(i.duration_hours, worker.hourly_rate),
            )
            for i in unpaid
        ],
    )
