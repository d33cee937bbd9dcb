"""Reservation status machine.

Edges::

    pending -> paid        (payment confirmation, before start)
    pending -> cancelled   (owner or admin, before start)
    paid    -> cancelled   (owner or admin, before start)
    pending -> expired     (reaper only, once start - grace has passed)

``cancelled`` and ``expired`` are terminal. Transitions are persisted with
a compare-and-swap on the current status so two actors racing on the same
record cannot both win.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.core.clock import ensure_utc
from reservation_engine.core.errors import (
    InvalidStatusTransitionError,
    ReservationAlreadyStartedError,
)
from reservation_engine.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {
            ReservationStatus.PAID,
            ReservationStatus.CANCELLED,
            ReservationStatus.EXPIRED,
        }
    ),
    ReservationStatus.PAID: frozenset({ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.EXPIRED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in _ALLOWED_STATUS_TRANSITIONS.items() if not targets
)


def allowed_targets(current: ReservationStatus) -> frozenset[ReservationStatus]:
    return _ALLOWED_STATUS_TRANSITIONS.get(current, frozenset())


def validate_status_transition(
    current: ReservationStatus, target: ReservationStatus
) -> None:
    if target not in allowed_targets(current):
        raise InvalidStatusTransitionError(
            f"Invalid status transition from {current.value} to {target.value}"
        )


def check_transition(
    reservation: Reservation,
    target: ReservationStatus,
    *,
    now: datetime,
    expiry_grace: timedelta = timedelta(0),
) -> None:
    """Raise unless ``reservation`` may move to ``target`` at ``now``."""
    validate_status_transition(reservation.status, target)
    now = ensure_utc(now)
    start = reservation.time_range.start
    if target is ReservationStatus.EXPIRED:
        if now < start - expiry_grace:
            raise InvalidStatusTransitionError(
                "Reservation cannot expire before its start time"
            )
    elif now >= start:
        raise ReservationAlreadyStartedError()


async def apply_transition(
    session: AsyncSession,
    reservation: Reservation,
    target: ReservationStatus,
    *,
    now: datetime,
    expiry_grace: timedelta = timedelta(0),
    changes: dict[str, Any] | None = None,
) -> None:
    """Validate and write a status change without committing.

    The UPDATE only matches while the row still holds the status this
    caller observed; losing that race raises
    :class:`InvalidStatusTransitionError`.
    """
    check_transition(reservation, target, now=now, expiry_grace=expiry_grace)
    now = ensure_utc(now)
    expected = reservation.status
    stmt = (
        update(Reservation)
        .where(Reservation.id == reservation.id, Reservation.status == expected)
        .values(status=target, status_changed_at=now, updated_at=now, **(changes or {}))
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount != 1:
        logger.info(
            "Reservation %s left status %s before it could become %s",
            reservation.id,
            expected.value,
            target.value,
        )
        raise InvalidStatusTransitionError(
            f"Reservation is no longer {expected.value}"
        )


__all__ = [
    "TERMINAL_STATUSES",
    "allowed_targets",
    "apply_transition",
    "check_transition",
    "validate_status_transition",
]
