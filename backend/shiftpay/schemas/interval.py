# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from typing import Self

from pydantic import BaseModel, Field, model_validator

from shiftpay.models.enums import IntervalStatus, OverlapKind

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateIntervalPayload(BaseModel):
    """Request body for submitting a work interval."""

    date: datetime.date
    start: datetime.time
    end: datetime.time
    note: str | None = Field(default=None, max_length=2000)
    project: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _validate_bounds(self) -> Self:
        if self.end <= self.start:
            msg = "end must be after start"
            raise ValueError(msg)
        return self


class UpdateIntervalPayload(BaseModel):
    """Partial update of a work interval. Omitted fields keep their value."""

    date: datetime.date | None = None
    start: datetime.time | None = None
    end: datetime.time | None = None
    note: str | None = Field(default=None, max_length=2000)
    project: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _validate_bounds(self) -> Self:
        if self.start is not None and self.end is not None and self.end <= self.start:
            msg = "end must be after start"
            raise ValueError(msg)
        return self

    @property
    def touches_bounds(self) -> bool:
        return self.date is not None or self.start is not None or self.end is not None


class RejectIntervalPayload(BaseModel):
    """Request body for rejecting an interval."""

    reason: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class IntervalResponse(BaseModel):
    """Response schema for a single work interval."""

    id: uuid.UUID
    owner_id: uuid.UUID
    company_id: uuid.UUID | None
    date: datetime.date
    start: str
    end: str
    start_at: datetime.datetime
    end_at: datetime.datetime
    duration_hours: float
    note: str | None
    project: str | None
    status: IntervalStatus
    rejection_reason: str | None
    reviewed_at: datetime.datetime | None
    reviewed_by: uuid.UUID | None
    paid: bool
    payment_id: uuid.UUID | None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class IntervalListResponse(BaseModel):
    """Paginated list of work intervals."""

    items: list[IntervalResponse]
    total: int


class IntervalConflictResponse(BaseModel):
    """One existing interval that overlaps a candidate."""

    id: uuid.UUID
    date: datetime.date
    start: str
    end: str
    project: str | None
    status: IntervalStatus
    kinds: list[OverlapKind]
    overlap_start_minute: float
    overlap_end_minute: float
    overlap_minutes: float
    overlap_period: str


class ReviewHistoryEntry(BaseModel):
    """One reviewer decision on an interval."""

    action: str
    actor_id: uuid.UUID
    status: IntervalStatus | None
    rejection_reason: str | None
    created_at: datetime.datetime


class ReviewHistoryResponse(BaseModel):
    """Reviewer decisions for an interval, newest first."""

    interval_id: uuid.UUID
    items: list[ReviewHistoryEntry]
