# ruff: noqa: TC003
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import TYPE_CHECKING

from shiftpay.exceptions import ServerError
from shiftpay.models.enums import IntervalStatus, OverlapKind
from shiftpay.schemas.interval import IntervalConflictResponse

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shiftpay.models.interval import WorkInterval

_SECONDS_PER_MINUTE = 60
_MINUTES_PER_HOUR = 60


def minutes_since_midnight(value: time | datetime) -> float:
    """Wall-clock position in minutes, keeping seconds as a fraction."""
    seconds = value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1_000_000
    return seconds / _SECONDS_PER_MINUTE


def format_minutes(minutes: float) -> str:
    """Render a minute offset as HH:MM, dropping any seconds."""
    whole = int(minutes)
    return f"{whole // _MINUTES_PER_HOUR:02d}:{whole % _MINUTES_PER_HOUR:02d}"


@dataclass(frozen=True)
class Span:
    """An interval's bounds on its calendar day, in minutes since midnight."""

    start: float
    end: float
    id: uuid.UUID | None = None
    calendar_date: date | None = None
    status: IntervalStatus = IntervalStatus.PENDING
    project: str | None = None

    @classmethod
    def from_interval(cls, interval: WorkInterval) -> Span:
        return cls(
            start=minutes_since_midnight(interval.start_at),
            end=minutes_since_midnight(interval.end_at),
            id=interval.id,
            calendar_date=interval.calendar_date,
            status=IntervalStatus(interval.status),
            project=interval.project,
        )


@dataclass
class IntervalConflict:
    """One existing span overlapping the candidate, with the cases that fired."""

    existing: Span
    kinds: list[OverlapKind] = field(default_factory=list)
    overlap_start: float = 0.0
    overlap_end: float = 0.0

    @property
    def overlap_minutes(self) -> float:
        return self.overlap_end - self.overlap_start

    @property
    def overlap_period(self) -> str:
        return f"{format_minutes(self.overlap_start)}–{format_minutes(self.overlap_end)}"

    def to_response(self) -> IntervalConflictResponse:
        existing = self.existing
        if existing.id is None or existing.calendar_date is None:
            raise ServerError("Conflict report needs a stored interval")
        return IntervalConflictResponse(
            id=existing.id,
            date=existing.calendar_date,
            start=format_minutes(existing.start),
            end=format_minutes(existing.end),
            project=existing.project,
            status=existing.status,
            kinds=self.kinds,
            overlap_start_minute=self.overlap_start,
            overlap_end_minute=self.overlap_end,
            overlap_minutes=self.overlap_minutes,
            overlap_period=self.overlap_period,
        )


def overlap_kinds(candidate: Span, existing: Span) -> list[OverlapKind]:
    """Return every overlap case that fires for the half-open spans.

    The four cases together are equivalent to
    ``candidate.start < existing.end and existing.start < candidate.end``.
    """
    ns, ne = candidate.start, candidate.end
    es, ee = existing.start, existing.end
    if not (ns < ee and es < ne):
        return []

    kinds: list[OverlapKind] = []
    if es <= ns < ee:
        kinds.append(OverlapKind.STARTS_INSIDE)
    if es < ne <= ee:
        kinds.append(OverlapKind.ENDS_INSIDE)
    if ns <= es and ne >= ee:
        kinds.append(OverlapKind.CONTAINS_EXISTING)
    if es <= ns and ee >= ne:
        kinds.append(OverlapKind.CONTAINED_BY_EXISTING)
    return kinds


def find_conflicts(candidate: Span, existing: Iterable[Span]) -> list[IntervalConflict]:
    """Return the existing spans that overlap the candidate.

    REJECTED spans and the candidate itself (matched by id) are skipped.
    Touching boundaries do not overlap.
    """
    conflicts: list[IntervalConflict] = []
    for other in existing:
        if other.status == IntervalStatus.REJECTED:
            continue
        if candidate.id is not None and other.id == candidate.id:
            continue
        kinds = overlap_kinds(candidate, other)
        if not kinds:
            continue
        conflicts.append(
            IntervalConflict(
                existing=other,
                kinds=kinds,
                overlap_start=max(candidate.start, other.start),
                overlap_end=min(candidate.end, other.end),
            )
        )
    return conflicts
