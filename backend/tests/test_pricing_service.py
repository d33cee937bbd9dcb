"""Tests for the pricing service."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from reservation_engine.core.config import Settings
from reservation_engine.core.errors import InvalidDurationError
from reservation_engine.domain.time_range import TimeRange
from reservation_engine.models import Reservation
from reservation_engine.services import pricing_service
from reservation_engine.services.pricing_service import PricingPolicy

POLICY = PricingPolicy(base_price=Decimal("5.00"), increment_price=Decimal("2.50"))


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [
        (1, "5.00"),
        (30, "5.00"),
        (60, "5.00"),
        (61, "7.50"),
        (120, "7.50"),
        (121, "10.00"),
        (180, "10.00"),
        (1440, "62.50"),
    ],
)
def test_price_charges_base_then_increment_per_started_hour(minutes, expected) -> None:
    assert POLICY.price(minutes) == Decimal(expected)


def test_price_is_monotonic() -> None:
    prices = [POLICY.price(minutes) for minutes in range(1, 600)]
    assert prices == sorted(prices)
    assert min(prices) == POLICY.base_price


def test_non_positive_duration_is_rejected() -> None:
    with pytest.raises(InvalidDurationError):
        POLICY.price(0)
    with pytest.raises(InvalidDurationError):
        pricing_service.billable_hours(-5)


def test_policy_from_settings() -> None:
    settings = Settings(BASE_PRICE="8", INCREMENT_PRICE="1.255")
    policy = PricingPolicy.from_settings(settings)
    assert policy.base_price == Decimal("8.00")
    assert policy.increment_price == Decimal("1.26")
    assert pricing_service.price(90, policy) == Decimal("9.26")


def test_verify_total_uses_the_snapshotted_policy() -> None:
    start = datetime(2025, 6, 1, 12, tzinfo=UTC)
    reservation = Reservation(
        start_at=start,
        end_at=start + timedelta(hours=2),
        total_price=Decimal("7.50"),
        billed_base_price=Decimal("5.00"),
        billed_increment_price=Decimal("2.50"),
    )
    assert pricing_service.verify_total(reservation)

    reservation.total_price = Decimal("10.00")
    assert not pricing_service.verify_total(reservation)


def test_price_for_time_range() -> None:
    start = datetime(2025, 6, 1, 12, tzinfo=UTC)
    time_range = TimeRange(start, start + timedelta(hours=2, seconds=1))
    assert POLICY.price_for(time_range) == Decimal("10.00")
