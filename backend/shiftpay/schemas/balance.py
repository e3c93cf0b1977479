# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel


class UnpaidIntervalResponse(BaseModel):
    """An approved interval not yet allocated to any payment."""

    id: uuid.UUID
    date: datetime.date
    duration_hours: float
    estimated_amount: Decimal


class WorkerBalanceResponse(BaseModel):
    """What a worker is owed versus what has been paid."""

    worker_id: uuid.UUID
    hourly_rate: Decimal | None
    start_date: datetime.date | None
    end_date: datetime.date | None
    total_approved_hours: float
    total_amount_due: Decimal
    total_paid: Decimal
    balance: Decimal
    paid_hours: float
    unpaid_hours: float
    unpaid_intervals: list[UnpaidIntervalResponse]
