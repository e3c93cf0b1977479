# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, Field

from shiftpay.models.enums import Role


class UpsertWorkerPayload(BaseModel):
    """Request body for registering a worker in the user directory."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: Role = Role.EMPLOYEE
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    company_id: uuid.UUID | None = None


class WorkerResponse(BaseModel):
    """Worker metadata as held by the user directory."""

    id: uuid.UUID
    company_id: uuid.UUID | None
    name: str
    email: str
    role: Role
    hourly_rate: Decimal | None
