# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from shiftpay.models.base import TimestampMixin, UUIDBase
from shiftpay.models.enums import IntervalStatus


class WorkInterval(UUIDBase, TimestampMixin, table=True):
    """A claimed span of work time for one worker on one calendar day."""

    __tablename__ = "work_interval"
    __table_args__ = (
        sa.Index("ix_interval_owner_date", "owner_id", "calendar_date"),
        sa.Index("ix_interval_company_status", "company_id", "status"),
        sa.CheckConstraint("end_at > start_at", name="ck_interval_positive_span"),
    )

    owner_id: uuid.UUID = Field(index=True)
    company_id: uuid.UUID | None = Field(default=None, index=True)
    calendar_date: date
    # Wall-clock instants on calendar_date; no timezone is attached.
    start_at: datetime = Field(sa_type=sa.DateTime(timezone=False))  # ty: ignore[invalid-argument-type]
    end_at: datetime = Field(sa_type=sa.DateTime(timezone=False))  # ty: ignore[invalid-argument-type]
    duration_hours: float
    note: str | None = None
    project: str | None = Field(default=None, max_length=255)
    status: str = Field(
        default=IntervalStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    rejection_reason: str | None = None
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    reviewed_by: uuid.UUID | None = None


class IntervalDayLock(UUIDBase, table=True):
    """Serialization point for conflict checks on one worker's calendar day.

    Writers upsert the row for (owner_id, calendar_date) and select it
    FOR UPDATE before reading that day's intervals.
    """

    __tablename__ = "interval_day_lock"
    __table_args__ = (sa.UniqueConstraint("owner_id", "calendar_date", name="uq_day_lock_owner_date"),)

    owner_id: uuid.UUID
    calendar_date: date
