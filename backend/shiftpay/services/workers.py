# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from shiftpay.models.enums import Role


class WorkerInfo(BaseModel):
    """Worker metadata from the user directory."""

    id: uuid.UUID
    company_id: uuid.UUID | None
    name: str
    email: str
    role: Role = Role.EMPLOYEE
    hourly_rate: Decimal | None = None


@runtime_checkable
class WorkerService(Protocol):
    """Interface for the user directory."""

    async def get_worker(self, worker_id: uuid.UUID) -> WorkerInfo | None:
        """Fetch worker metadata. Returns None if not found."""
        ...

    async def list_workers(self, company_id: uuid.UUID) -> list[WorkerInfo]:
        """List all workers for a company."""
        ...


class InMemoryWorkerService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._workers: dict[uuid.UUID, WorkerInfo] = {}

    def seed(self, worker: WorkerInfo) -> None:
        """Seed a worker for testing."""
        self._workers[worker.id] = worker

    async def get_worker(self, worker_id: uuid.UUID) -> WorkerInfo | None:
        """Fetch worker metadata. Returns None if not found."""
        return self._workers.get(worker_id)

    async def list_workers(self, company_id: uuid.UUID) -> list[WorkerInfo]:
        """List all workers for a company."""
        return [w for w in self._workers.values() if w.company_id == company_id]


_worker_service: WorkerService = InMemoryWorkerService()


def get_worker_service() -> WorkerService:
    """Return the active user directory."""
    return _worker_service


def set_worker_service(service: WorkerService) -> None:
    """Override the service (for testing or production wiring)."""
    global _worker_service
    _worker_service = service
