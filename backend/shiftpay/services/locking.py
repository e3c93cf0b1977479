# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import col

from shiftpay.models.interval import IntervalDayLock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def _lock_day(session: AsyncSession, owner_id: uuid.UUID, calendar_date: date) -> None:
    """Upsert the lock row for (owner, date) and hold it FOR UPDATE."""
    insert = pg_insert if session.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = (
        insert(IntervalDayLock)
        .values(id=uuid.uuid4(), owner_id=owner_id, calendar_date=calendar_date)
        .on_conflict_do_nothing(index_elements=["owner_id", "calendar_date"])
    )
    await session.execute(stmt)
    await session.execute(
        select(IntervalDayLock)
        .where(
            col(IntervalDayLock.owner_id) == owner_id,
            col(IntervalDayLock.calendar_date) == calendar_date,
        )
        .with_for_update()
    )


async def lock_owner_days(session: AsyncSession, owner_id: uuid.UUID, *dates: date) -> None:
    """Serialize conflict checks for one worker's calendar days.

    Days are locked in ascending order so two edits moving intervals
    between the same pair of days cannot deadlock.
    """
    for calendar_date in sorted(set(dates)):
        await _lock_day(session, owner_id, calendar_date)
