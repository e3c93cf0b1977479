# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, Response, status

from shiftpay.api.deps import ActorDep, NowDep
from shiftpay.config import get_settings
from shiftpay.db import SessionDep
from shiftpay.models.enums import IntervalStatus
from shiftpay.schemas.interval import (
    CreateIntervalPayload,
    IntervalListResponse,
    IntervalResponse,
    RejectIntervalPayload,
    ReviewHistoryResponse,
    UpdateIntervalPayload,
)
from shiftpay.services import approval as approval_service
from shiftpay.services import intervals as interval_service
from shiftpay.services.intervals import IntervalSort

intervals_router = APIRouter(prefix="/intervals", tags=["intervals"])


@intervals_router.get("", response_model=IntervalListResponse)
async def list_intervals(
    session: SessionDep,
    actor: ActorDep,
    owner_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    status_filter: IntervalStatus | None = Query(default=None, alias="status"),
    unpaid_only: bool = Query(default=False),
    include_own: bool = Query(default=False),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1),
    sort: IntervalSort = Query(default="date_desc"),
) -> IntervalListResponse:
    """List work intervals visible to the caller."""
    return await interval_service.list_intervals(
        session,
        actor,
        owner_id=owner_id,
        start_date=start_date,
        end_date=end_date,
        status_filter=status_filter,
        unpaid_only=unpaid_only,
        include_own=include_own,
        offset=offset,
        limit=min(limit, get_settings().max_page_size),
        sort=sort,
    )


@intervals_router.post("", response_model=IntervalResponse, status_code=status.HTTP_201_CREATED)
async def create_interval(
    payload: CreateIntervalPayload,
    session: SessionDep,
    actor: ActorDep,
) -> IntervalResponse:
    """Submit a work interval for the caller."""
    return await interval_service.create_interval(session, actor, payload)


@intervals_router.get("/{interval_id}", response_model=IntervalResponse)
async def get_interval(
    interval_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> IntervalResponse:
    """Get a single work interval."""
    return await interval_service.get_interval(session, actor, interval_id)


@intervals_router.patch("/{interval_id}", response_model=IntervalResponse)
async def update_interval(
    interval_id: uuid.UUID,
    payload: UpdateIntervalPayload,
    session: SessionDep,
    actor: ActorDep,
    now: NowDep,
) -> IntervalResponse:
    """Edit a work interval."""
    return await interval_service.update_interval(session, actor, interval_id, payload, now)


@intervals_router.delete("/{interval_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interval(
    interval_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> Response:
    """Delete an unpaid work interval."""
    await interval_service.delete_interval(session, actor, interval_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@intervals_router.post("/{interval_id}/approve", response_model=IntervalResponse)
async def approve_interval(
    interval_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
    now: NowDep,
) -> IntervalResponse:
    """Approve a work interval."""
    return await approval_service.approve_interval(session, actor, interval_id, now)


@intervals_router.post("/{interval_id}/reject", response_model=IntervalResponse)
async def reject_interval(
    interval_id: uuid.UUID,
    payload: RejectIntervalPayload,
    session: SessionDep,
    actor: ActorDep,
    now: NowDep,
) -> IntervalResponse:
    """Reject a work interval with a reason."""
    return await approval_service.reject_interval(session, actor, interval_id, payload.reason, now)


@intervals_router.get("/{interval_id}/history", response_model=ReviewHistoryResponse)
async def get_review_history(
    interval_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
) -> ReviewHistoryResponse:
    """List approve and reject decisions on a work interval."""
    return await approval_service.get_review_history(session, actor, interval_id)
