"""Half-open time intervals."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from reservation_engine.core.clock import ensure_utc
from reservation_engine.core.errors import InvalidRangeError


@dataclass(frozen=True, slots=True)
class TimeRange:
    """Immutable ``[start, end)`` interval of aware UTC instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = ensure_utc(self.start)
        end = ensure_utc(self.end)
        if start >= end:
            raise InvalidRangeError(
                f"Range end {end.isoformat()} must be after start {start.isoformat()}"
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def for_day(cls, day: date) -> TimeRange:
        """The UTC calendar day ``day`` as a range."""
        start = datetime.combine(day, time.min, tzinfo=UTC)
        return cls(start, start + timedelta(days=1))

    def overlaps(self, other: TimeRange) -> bool:
        # Touching ranges (self.end == other.start) share no instant.
        return self.start < other.end and other.start < self.end

    def contains(self, moment: datetime) -> bool:
        moment = ensure_utc(moment)
        return self.start <= moment < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        """Duration in whole minutes, rounding any partial minute up."""
        return math.ceil(self.duration.total_seconds() / 60)


__all__ = ["TimeRange"]
