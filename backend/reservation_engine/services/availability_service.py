"""Area availability queries against active reservations."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.domain.time_range import TimeRange
from reservation_engine.models.reservation import (
    ACTIVE_STATUSES,
    Reservation,
    ReservationStatus,
)


@dataclass(slots=True)
class ReservedSlot:
    """A window an area is held by an active reservation."""

    reservation_id: uuid.UUID
    time_range: TimeRange
    status: ReservationStatus


@dataclass(slots=True)
class DailyTimeline:
    """Reserved and free windows of one area over one UTC day."""

    area_id: int
    day: date
    reserved: list[ReservedSlot]
    free: list[TimeRange]


def _overlapping_query(
    area_id: int,
    time_range: TimeRange,
    *,
    exclude_reservation_id: uuid.UUID | None,
) -> Select[tuple[Reservation]]:
    stmt = select(Reservation).where(
        Reservation.area_id == area_id,
        Reservation.status.in_(list(ACTIVE_STATUSES)),
        Reservation.start_at < time_range.end,
        Reservation.end_at > time_range.start,
    )
    if exclude_reservation_id is not None:
        stmt = stmt.where(Reservation.id != exclude_reservation_id)
    return stmt


async def is_available(
    session: AsyncSession,
    *,
    area_id: int,
    time_range: TimeRange,
    exclude_reservation_id: uuid.UUID | None = None,
) -> bool:
    """Return False if any pending/paid reservation of the area overlaps."""
    stmt = (
        _overlapping_query(
            area_id,
            time_range,
            exclude_reservation_id=exclude_reservation_id,
        )
        .with_only_columns(Reservation.id)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is None


async def find_conflicts(
    session: AsyncSession,
    *,
    area_id: int,
    time_range: TimeRange,
    exclude_reservation_id: uuid.UUID | None = None,
) -> Sequence[Reservation]:
    """Return the active reservations overlapping ``time_range``."""
    stmt = _overlapping_query(
        area_id,
        time_range,
        exclude_reservation_id=exclude_reservation_id,
    ).order_by(Reservation.start_at, Reservation.id)
    result = await session.execute(stmt)
    return result.scalars().all()


def free_windows(window: TimeRange, busy: Iterable[TimeRange]) -> list[TimeRange]:
    """Return the parts of ``window`` not covered by any ``busy`` range."""
    free: list[TimeRange] = []
    cursor = window.start
    for taken in sorted(busy, key=lambda item: item.start):
        if taken.end <= cursor:
            continue
        if taken.start >= window.end:
            break
        if taken.start > cursor:
            free.append(TimeRange(cursor, taken.start))
        cursor = max(cursor, taken.end)
    if cursor < window.end:
        free.append(TimeRange(cursor, window.end))
    return free


async def daily_timeline(
    session: AsyncSession,
    *,
    area_id: int,
    day: date,
) -> DailyTimeline:
    """Reserved slots and remaining free windows for ``area_id`` on ``day``."""
    window = TimeRange.for_day(day)
    reservations = await find_conflicts(
        session, area_id=area_id, time_range=window
    )
    reserved = [
        ReservedSlot(
            reservation_id=item.id,
            time_range=item.time_range,
            status=item.status,
        )
        for item in reservations
    ]
    return DailyTimeline(
        area_id=area_id,
        day=day,
        reserved=reserved,
        free=free_windows(window, (slot.time_range for slot in reserved)),
    )


__all__ = [
    "DailyTimeline",
    "ReservedSlot",
    "daily_timeline",
    "find_conflicts",
    "free_windows",
    "is_available",
]
