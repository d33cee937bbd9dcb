"""Duration-based pricing for area reservations.

The first hour (or any fraction of it) costs ``base_price``; every further
started hour costs ``increment_price``. The function is pure so a stored
``total_price`` can be re-derived from the reservation's range and the
policy snapshot kept alongside it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from reservation_engine.core.config import Settings, get_settings
from reservation_engine.core.errors import InvalidDurationError
from reservation_engine.domain.time_range import TimeRange

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from reservation_engine.models.reservation import Reservation

MONEY_PLACES = Decimal("0.01")
MINUTES_PER_BLOCK = 60


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def billable_hours(duration_minutes: int) -> int:
    """Hours billed for a duration, rounding up to the next whole hour."""
    if duration_minutes <= 0:
        raise InvalidDurationError(
            f"Duration must be positive, got {duration_minutes} minute(s)"
        )
    return math.ceil(duration_minutes / MINUTES_PER_BLOCK)


@dataclass(frozen=True, slots=True)
class PricingPolicy:
    """Base price for the first hour plus a flat increment per extra hour."""

    base_price: Decimal
    increment_price: Decimal

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PricingPolicy:
        settings = settings or get_settings()
        return cls(
            base_price=to_money(settings.base_price),
            increment_price=to_money(settings.increment_price),
        )

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> PricingPolicy:
        """Rebuild the policy that was in effect when ``reservation`` was made."""
        return cls(
            base_price=to_money(reservation.billed_base_price),
            increment_price=to_money(reservation.billed_increment_price),
        )

    def price(self, duration_minutes: int) -> Decimal:
        hours = billable_hours(duration_minutes)
        if hours <= 1:
            return to_money(self.base_price)
        return to_money(self.base_price + (hours - 1) * self.increment_price)

    def price_for(self, time_range: TimeRange) -> Decimal:
        return self.price(time_range.duration_minutes())


def price(duration_minutes: int, policy: PricingPolicy | None = None) -> Decimal:
    """Price a duration with ``policy`` (defaults to the configured one)."""
    policy = policy or PricingPolicy.from_settings()
    return policy.price(duration_minutes)


def verify_total(reservation: Reservation) -> bool:
    """Return True when the stored total matches its range and policy snapshot."""
    policy = PricingPolicy.from_reservation(reservation)
    return policy.price_for(reservation.time_range) == to_money(reservation.total_price)


__all__ = [
    "MONEY_PLACES",
    "PricingPolicy",
    "billable_hours",
    "price",
    "to_money",
    "verify_total",
]
