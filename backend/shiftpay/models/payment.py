# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from shiftpay.models.base import TimestampMixin, UUIDBase
from shiftpay.models.enums import PaymentStatus


class Payment(UUIDBase, TimestampMixin, table=True):
    """A payment issued to a worker for a set of approved intervals."""

    __tablename__ = "payment"
    __table_args__ = (sa.Index("ix_payment_company_status", "company_id", "status"),)

    payee_id: uuid.UUID = Field(index=True)
    company_id: uuid.UUID | None = Field(default=None, index=True)
    creator_id: uuid.UUID | None = None
    amount: Decimal = Field(sa_type=sa.Numeric(12, 2))  # ty: ignore[invalid-argument-type]
    issue_date: date
    period_start: date
    period_end: date
    payment_method: str = Field(max_length=50)
    reference: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: str = Field(
        default=PaymentStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    confirmed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    receipt_url: str | None = Field(default=None, max_length=2048)


class PaymentAllocation(UUIDBase, table=True):
    """Links one payment to one work interval with the amount attributed to it.

    work_interval_id is unique system-wide: an interval belongs to at most
    one payment.
    """

    __tablename__ = "payment_allocation"
    __table_args__ = (sa.UniqueConstraint("work_interval_id", name="uq_allocation_interval"),)

    payment_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("payment.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    work_interval_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("work_interval.id", ondelete="RESTRICT"), nullable=False),
    )
    allocated_amount: Decimal = Field(sa_type=sa.Numeric(12, 2))  # ty: ignore[invalid-argument-type]
