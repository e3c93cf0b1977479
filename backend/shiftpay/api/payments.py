# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, Response, status

from shiftpay.api.deps import ActorDep, NowDep
from shiftpay.config import get_settings
from shiftpay.db import SessionDep
from shiftpay.models.enums import PaymentStatus
from shiftpay.schemas.payment import (
    CreatePaymentPayload,
    PaymentListResponse,
    PaymentResponse,
    UpdatePaymentPayload,
)
from shiftpay.services import reconciliation as reconciliation_service
from shiftpay.services.reconciliation import PaymentSort

payments_router = APIRouter(prefix="/payments", tags=["payments"])


@payments_router.get("", response_model=PaymentListResponse)
async def list_payments(
    session: SessionDep,
    actor: ActorDep,
    payee_id: uuid.UUID | None = Query(default=None),
    status_filter: PaymentStatus | None = Query(default=None, alias="status"),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1),
    sort: PaymentSort = Query(default="issue_desc"),
) -> PaymentListResponse:
    """List payments visible to the caller."""
    return await reconciliation_service.list_payments(
        session,
        actor,
        payee_id=payee_id,
        status_filter=status_filter,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=min(limit, get_settings().max_page_size),
        sort=sort,
    )


@payments_router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: CreatePaymentPayload,
    session: SessionDep,
    actor: ActorDep,
    now: NowDep,
) -> PaymentResponse:
    """Reconcile approved intervals into a payment."""
    return await reconciliation_service.create_payment(session, actor, payload, now)


@payments_router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> PaymentResponse:
    """Get a single payment with its allocations."""
    return await reconciliation_service.get_payment(session, actor, payment_id)


@payments_router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: uuid.UUID,
    payload: UpdatePaymentPayload,
    session: SessionDep,
    actor: ActorDep,
    now: NowDep,
) -> PaymentResponse:
    """Confirm, cancel or correct a payment."""
    return await reconciliation_service.update_payment(session, actor, payment_id, payload, now)


@payments_router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> Response:
    """Delete a payment, releasing its intervals."""
    await reconciliation_service.delete_payment(session, actor, payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
