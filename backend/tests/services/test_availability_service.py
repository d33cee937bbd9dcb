"""Tests for area availability queries."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.domain.time_range import TimeRange
from reservation_engine.models import Reservation, ReservationStatus
from reservation_engine.services import availability_service

pytestmark = pytest.mark.asyncio

DAY = date(2025, 6, 1)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 6, 1, hour, minute, tzinfo=UTC)


async def _add(
    session: AsyncSession,
    area_id: int,
    start: datetime,
    end: datetime,
    status: ReservationStatus = ReservationStatus.PENDING,
) -> Reservation:
    reservation = Reservation(
        area_id=area_id,
        user_id=1,
        start_at=start,
        end_at=end,
        guest_count=2,
        status=status,
        total_price=Decimal("5.00"),
        billed_base_price=Decimal("5.00"),
        billed_increment_price=Decimal("2.50"),
    )
    session.add(reservation)
    await session.commit()
    return reservation


async def test_overlapping_active_reservation_blocks_range(
    session: AsyncSession, areas: dict[str, int]
) -> None:
    terrace = areas["terrace"]
    existing = await _add(session, terrace, _at(12), _at(14))

    assert not await availability_service.is_available(
        session, area_id=terrace, time_range=TimeRange(_at(13), _at(15))
    )
    assert await availability_service.is_available(
        session, area_id=terrace, time_range=TimeRange(_at(14), _at(16))
    )
    assert await availability_service.is_available(
        session, area_id=terrace, time_range=TimeRange(_at(10), _at(12))
    )
    assert await availability_service.is_available(
        session, area_id=areas["hall"], time_range=TimeRange(_at(12), _at(14))
    )
    assert await availability_service.is_available(
        session,
        area_id=terrace,
        time_range=TimeRange(_at(13), _at(15)),
        exclude_reservation_id=existing.id,
    )


async def test_inactive_reservations_do_not_block(
    session: AsyncSession, areas: dict[str, int]
) -> None:
    terrace = areas["terrace"]
    await _add(session, terrace, _at(12), _at(14), ReservationStatus.CANCELLED)
    await _add(session, terrace, _at(12), _at(14), ReservationStatus.EXPIRED)

    assert await availability_service.is_available(
        session, area_id=terrace, time_range=TimeRange(_at(12), _at(14))
    )


async def test_long_reservation_started_earlier_is_found(
    session: AsyncSession, areas: dict[str, int]
) -> None:
    terrace = areas["terrace"]
    long_stay = await _add(
        session, terrace, _at(1), _at(1) + timedelta(hours=20), ReservationStatus.PAID
    )

    conflicts = await availability_service.find_conflicts(
        session, area_id=terrace, time_range=TimeRange(_at(18), _at(19))
    )
    assert [item.id for item in conflicts] == [long_stay.id]


async def test_find_conflicts_orders_by_start(
    session: AsyncSession, areas: dict[str, int]
) -> None:
    terrace = areas["terrace"]
    late = await _add(session, terrace, _at(16), _at(17))
    early = await _add(session, terrace, _at(9), _at(10), ReservationStatus.PAID)

    conflicts = await availability_service.find_conflicts(
        session, area_id=terrace, time_range=TimeRange.for_day(DAY)
    )
    assert [item.id for item in conflicts] == [early.id, late.id]


async def test_daily_timeline_splits_free_windows(
    session: AsyncSession, areas: dict[str, int]
) -> None:
    terrace = areas["terrace"]
    await _add(session, terrace, _at(9), _at(11))
    await _add(session, terrace, _at(11), _at(12), ReservationStatus.PAID)
    await _add(session, terrace, _at(18), _at(20))
    await _add(session, terrace, _at(20), _at(21), ReservationStatus.CANCELLED)

    timeline = await availability_service.daily_timeline(
        session, area_id=terrace, day=DAY
    )

    assert timeline.area_id == terrace
    assert [slot.status for slot in timeline.reserved] == [
        ReservationStatus.PENDING,
        ReservationStatus.PAID,
        ReservationStatus.PENDING,
    ]
    assert [(window.start, window.end) for window in timeline.free] == [
        (_at(0), _at(9)),
        (_at(12), _at(18)),
        (_at(20), datetime(2025, 6, 2, tzinfo=UTC)),
    ]


async def test_free_windows_clips_busy_ranges_to_the_window() -> None:
    window = TimeRange(_at(8), _at(20))
    busy = [
        TimeRange(_at(6), _at(9)),
        TimeRange(_at(12), _at(13)),
        TimeRange(_at(12, 30), _at(14)),
        TimeRange(_at(19), _at(22)),
    ]
    free = availability_service.free_windows(window, busy)
    assert [(item.start, item.end) for item in free] == [
        (_at(9), _at(12)),
        (_at(14), _at(19)),
    ]


async def test_long_reservation_blocks_its_tail(
    session: AsyncSession, areas: dict[str, int]
) -> None:
    terrace = areas["terrace"]
    start = _at(0) - timedelta(days=2)
    await _add(session, terrace, start, _at(18))
    late = TimeRange(_at(17), _at(18))

    assert not await availability_service.is_available(
        session, area_id=terrace, time_range=late
    )
    conflicts = await availability_service.find_conflicts(
        session, area_id=terrace, time_range=late
    )
    assert [c.start_at.replace(tzinfo=UTC) for c in conflicts] == [start]
