"""Tests for the half-open time range value type."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from reservation_engine.core.errors import InvalidRangeError
from reservation_engine.domain.time_range import TimeRange

NOON = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def _range(start_hour: float, end_hour: float) -> TimeRange:
    return TimeRange(NOON + timedelta(hours=start_hour), NOON + timedelta(hours=end_hour))


def test_rejects_empty_and_inverted_ranges() -> None:
    with pytest.raises(InvalidRangeError):
        TimeRange(NOON, NOON)
    with pytest.raises(InvalidRangeError):
        TimeRange(NOON, NOON - timedelta(minutes=1))


def test_normalizes_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))
    time_range = TimeRange(
        datetime(2025, 6, 1, 14, 0, tzinfo=plus_two),
        datetime(2025, 6, 1, 16, 0, tzinfo=plus_two),
    )
    assert time_range.start == NOON
    assert time_range.start.tzinfo is UTC

    naive = TimeRange(datetime(2025, 6, 1, 12), datetime(2025, 6, 1, 13))
    assert naive.start == NOON


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ((0, 2), (1, 3), True),
        ((0, 2), (2, 4), False),
        ((0, 4), (1, 2), True),
        ((0, 1), (3, 4), False),
        ((0, 2), (0, 2), True),
        ((1, 2), (0, 1), False),
    ],
)
def test_overlap_is_half_open_and_symmetric(a, b, expected) -> None:
    first, second = _range(*a), _range(*b)
    assert first.overlaps(second) is expected
    assert second.overlaps(first) is expected


def test_contains_excludes_end() -> None:
    time_range = _range(0, 2)
    assert time_range.contains(NOON)
    assert time_range.contains(NOON + timedelta(hours=1, minutes=59))
    assert not time_range.contains(NOON + timedelta(hours=2))


def test_duration_minutes_rounds_partial_minutes_up() -> None:
    assert _range(0, 2).duration_minutes() == 120
    assert TimeRange(NOON, NOON + timedelta(seconds=61)).duration_minutes() == 2


def test_for_day_covers_utc_calendar_day() -> None:
    day = TimeRange.for_day(date(2025, 6, 1))
    assert day.start == datetime(2025, 6, 1, tzinfo=UTC)
    assert day.duration == timedelta(days=1)
