"""Schema exports."""

from reservation_engine.schemas.availability import (
    AvailabilityCheckResponse,
    DailyTimelineRead,
    ReservedSlotRead,
)
from reservation_engine.schemas.reservation import (
    ConfirmPaymentRequest,
    NotesUpdate,
    ReservationCreate,
    ReservationRead,
    TimeRangeRead,
)

__all__ = [
    "AvailabilityCheckResponse",
    "ConfirmPaymentRequest",
    "DailyTimelineRead",
    "NotesUpdate",
    "ReservationCreate",
    "ReservationRead",
    "ReservedSlotRead",
    "TimeRangeRead",
]
