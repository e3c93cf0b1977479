# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from shiftpay.api.deps import ActorDep, AdminDep
from shiftpay.db import SessionDep
from shiftpay.exceptions import AuthorizationError, NotFoundError
from shiftpay.models.enums import Role
from shiftpay.schemas.balance import WorkerBalanceResponse
from shiftpay.schemas.worker import UpsertWorkerPayload, WorkerResponse
from shiftpay.services.balance import get_worker_balance
from shiftpay.services.scope import scope_for
from shiftpay.services.workers import WorkerInfo, get_worker_service

workers_router = APIRouter(prefix="/workers", tags=["workers"])


def _build_worker_response(worker: WorkerInfo) -> WorkerResponse:
    return WorkerResponse(
        id=worker.id,
        company_id=worker.company_id,
        name=worker.name,
        email=worker.email,
        role=worker.role,
        hourly_rate=worker.hourly_rate,
    )


@workers_router.put("/{worker_id}", response_model=WorkerResponse)
async def upsert_worker(
    worker_id: uuid.UUID,
    payload: UpsertWorkerPayload,
    actor: AdminDep,
) -> WorkerResponse:
    """Create or update a worker in the stub directory (admin only).

    Admins register workers into their own company; developers may name any.
    """
    company_id = payload.company_id or actor.company_id
    if actor.role == Role.ADMIN and company_id != actor.company_id:
        raise AuthorizationError("Admins can only register workers in their own company")
    worker = WorkerInfo(
        id=worker_id,
        company_id=company_id,
        name=payload.name,
        email=payload.email,
        role=payload.role,
        hourly_rate=payload.hourly_rate,
    )
    get_worker_service().seed(worker)  # ty: ignore[unresolved-attribute]
    return _build_worker_response(worker)


@workers_router.get("/{worker_id}", response_model=WorkerResponse)
async def get_worker(worker_id: uuid.UUID, actor: ActorDep) -> WorkerResponse:
    """Get worker metadata from the stub directory."""
    worker = await scope_for(actor).resolve_owner(worker_id)
    if worker is None:
        raise NotFoundError("Worker not found")
    return _build_worker_response(worker)


@workers_router.get("/{worker_id}/balance", response_model=WorkerBalanceResponse)
async def worker_balance(
    worker_id: uuid.UUID,
    session: SessionDep,
    actor: ActorDep,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> WorkerBalanceResponse:
    """Approved hours, amount due and amount paid for a worker."""
    return await get_worker_balance(session, actor, worker_id, start_date, end_date)
