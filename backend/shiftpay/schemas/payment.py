# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, HttpUrl, model_validator

from shiftpay.models.enums import PaymentMethod, PaymentStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreatePaymentPayload(BaseModel):
    """Request body for reconciling approved intervals into a payment."""

    payee_id: uuid.UUID
    interval_ids: list[uuid.UUID] = Field(min_length=1)
    amount_override: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    reference: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    issue_date: datetime.date | None = None
    period_start: datetime.date
    period_end: datetime.date

    @model_validator(mode="after")
    def _validate_payload(self) -> Self:
        if self.period_end < self.period_start:
            msg = "period_end must not be before period_start"
            raise ValueError(msg)
        if len(set(self.interval_ids)) != len(self.interval_ids):
            msg = "interval_ids must not contain duplicates"
            raise ValueError(msg)
        return self


class UpdatePaymentPayload(BaseModel):
    """Status change or metadata correction on a payment."""

    status: PaymentStatus | None = None
    confirmed_at: datetime.datetime | None = None
    receipt_url: HttpUrl | None = None
    creator_id: uuid.UUID | None = None

    def provided_fields(self) -> set[str]:
        return set(self.model_dump(exclude_unset=True))


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AllocationResponse(BaseModel):
    """Amount of a payment attributed to one interval."""

    interval_id: uuid.UUID
    date: datetime.date
    duration_hours: float
    allocated_amount: Decimal


class PaymentResponse(BaseModel):
    """Response schema for a single payment."""

    id: uuid.UUID
    payee_id: uuid.UUID
    company_id: uuid.UUID | None
    creator_id: uuid.UUID | None
    amount: Decimal
    issue_date: datetime.date
    period_start: datetime.date
    period_end: datetime.date
    payment_method: PaymentMethod
    reference: str | None
    description: str | None
    status: PaymentStatus
    confirmed_at: datetime.datetime | None
    receipt_url: str | None
    total_hours: float
    allocations: list[AllocationResponse]
    created_at: datetime.datetime
    updated_at: datetime.datetime


class PaymentListResponse(BaseModel):
    """Paginated list of payments."""

    items: list[PaymentResponse]
    total: int
