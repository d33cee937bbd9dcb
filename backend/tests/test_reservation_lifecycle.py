"""Tests for the reservation status machine."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from itertools import product

import pytest

from reservation_engine.core.errors import (
    InvalidStatusTransitionError,
    ReservationAlreadyStartedError,
)
from reservation_engine.models import Reservation, ReservationStatus
from reservation_engine.services import reservation_lifecycle

START = datetime(2025, 6, 1, 12, tzinfo=UTC)
BEFORE = START - timedelta(hours=1)
AFTER = START + timedelta(minutes=1)

LEGAL = {
    (ReservationStatus.PENDING, ReservationStatus.PAID),
    (ReservationStatus.PENDING, ReservationStatus.CANCELLED),
    (ReservationStatus.PENDING, ReservationStatus.EXPIRED),
    (ReservationStatus.PAID, ReservationStatus.CANCELLED),
}


def _reservation(status: ReservationStatus) -> Reservation:
    return Reservation(
        start_at=START,
        end_at=START + timedelta(hours=2),
        status=status,
    )


@pytest.mark.parametrize(
    ("current", "target"), list(product(ReservationStatus, ReservationStatus))
)
def test_only_listed_edges_are_allowed(current, target) -> None:
    if (current, target) in LEGAL:
        reservation_lifecycle.validate_status_transition(current, target)
    else:
        with pytest.raises(InvalidStatusTransitionError):
            reservation_lifecycle.validate_status_transition(current, target)


def test_terminal_statuses() -> None:
    assert reservation_lifecycle.TERMINAL_STATUSES == {
        ReservationStatus.CANCELLED,
        ReservationStatus.EXPIRED,
    }


@pytest.mark.parametrize("target", [ReservationStatus.PAID, ReservationStatus.CANCELLED])
def test_user_transitions_require_future_start(target) -> None:
    reservation = _reservation(ReservationStatus.PENDING)
    reservation_lifecycle.check_transition(reservation, target, now=BEFORE)
    with pytest.raises(ReservationAlreadyStartedError):
        reservation_lifecycle.check_transition(reservation, target, now=START)
    with pytest.raises(ReservationAlreadyStartedError):
        reservation_lifecycle.check_transition(reservation, target, now=AFTER)


def test_paid_cannot_be_cancelled_after_start() -> None:
    reservation = _reservation(ReservationStatus.PAID)
    with pytest.raises(ReservationAlreadyStartedError):
        reservation_lifecycle.check_transition(
            reservation, ReservationStatus.CANCELLED, now=AFTER
        )


def test_invalid_edge_wins_over_start_guard() -> None:
    reservation = _reservation(ReservationStatus.CANCELLED)
    with pytest.raises(InvalidStatusTransitionError):
        reservation_lifecycle.check_transition(
            reservation, ReservationStatus.PAID, now=AFTER
        )


def test_expiry_waits_for_start_minus_grace() -> None:
    reservation = _reservation(ReservationStatus.PENDING)
    with pytest.raises(InvalidStatusTransitionError):
        reservation_lifecycle.check_transition(
            reservation, ReservationStatus.EXPIRED, now=BEFORE
        )
    reservation_lifecycle.check_transition(
        reservation, ReservationStatus.EXPIRED, now=START
    )
    reservation_lifecycle.check_transition(
        reservation,
        ReservationStatus.EXPIRED,
        now=BEFORE,
        expiry_grace=timedelta(hours=1),
    )


def test_paid_reservations_never_expire() -> None:
    reservation = _reservation(ReservationStatus.PAID)
    with pytest.raises(InvalidStatusTransitionError):
        reservation_lifecycle.check_transition(
            reservation, ReservationStatus.EXPIRED, now=AFTER
        )
