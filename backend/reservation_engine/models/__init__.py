"""ORM models package export."""

from reservation_engine.models.area import Area
from reservation_engine.models.reservation import (
    ACTIVE_STATUSES,
    NOTES_MAX_LENGTH,
    PaymentMethod,
    Reservation,
    ReservationStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "NOTES_MAX_LENGTH",
    "Area",
    "PaymentMethod",
    "Reservation",
    "ReservationStatus",
]
