"""Typed failures raised by the reservation engine.

Every error carries a stable ``code`` and the HTTP status the API layer
renders it with, so clients can tell "pick another time" apart from
"you can't do that".
"""

from __future__ import annotations


class ReservationError(Exception):
    """Base class for all engine failures."""

    code = "reservation_error"
    status_code = 400
    default_message = "Reservation request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRangeError(ReservationError):
    code = "invalid_range"
    default_message = "Reservation end time must be after start time"


class InvalidDurationError(ReservationError):
    code = "invalid_duration"
    default_message = "Reservation duration is out of bounds"


class InvalidNotesError(ReservationError):
    code = "invalid_notes"
    default_message = "Notes are too long"


class AreaInactiveError(ReservationError):
    code = "area_inactive"
    status_code = 409
    default_message = "This area is not available for reservations"


class InvalidBookingWindowError(ReservationError):
    code = "invalid_booking_window"
    default_message = "Reservation start is outside the booking window"


class CapacityExceededError(ReservationError):
    code = "capacity_exceeded"
    default_message = "Guest count is outside the area capacity"


class SlotUnavailableError(ReservationError):
    code = "slot_unavailable"
    status_code = 409
    default_message = "This time slot was just taken"


class InvalidStatusTransitionError(ReservationError):
    code = "invalid_status_transition"
    status_code = 409
    default_message = "Reservation cannot move to the requested status"


class ReservationAlreadyStartedError(ReservationError):
    code = "reservation_already_started"
    status_code = 409
    default_message = "Reservation has already started"


class ReservationNotEditableError(ReservationError):
    code = "reservation_not_editable"
    status_code = 409
    default_message = "Only pending reservations can be edited"


class ForbiddenError(ReservationError):
    code = "forbidden"
    status_code = 403
    default_message = "You are not allowed to act on this reservation"


class NotFoundError(ReservationError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found"


class StorageUnavailableError(ReservationError):
    code = "storage_unavailable"
    status_code = 503
    default_message = "Reservation storage is temporarily unavailable"


__all__ = [
    "AreaInactiveError",
    "CapacityExceededError",
    "ForbiddenError",
    "InvalidBookingWindowError",
    "InvalidDurationError",
    "InvalidNotesError",
    "InvalidRangeError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "ReservationAlreadyStartedError",
    "ReservationError",
    "ReservationNotEditableError",
    "SlotUnavailableError",
    "StorageUnavailableError",
]
