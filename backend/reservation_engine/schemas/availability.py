"""Availability schemas."""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict

from reservation_engine.models.reservation import ReservationStatus
from reservation_engine.schemas.reservation import TimeRangeRead


class ReservedSlotRead(BaseModel):
    reservation_id: uuid.UUID
    time_range: TimeRangeRead
    status: ReservationStatus

    model_config = ConfigDict(from_attributes=True)


class DailyTimelineRead(BaseModel):
    """Reserved and free windows of one area for one UTC day."""

    area_id: int
    day: date
    reserved: list[ReservedSlotRead]
    free: list[TimeRangeRead]

    model_config = ConfigDict(from_attributes=True)


class AvailabilityCheckResponse(BaseModel):
    """Whether a range is free, with the reservations blocking it."""

    area_id: int
    time_range: TimeRangeRead
    available: bool
    conflicts: list[ReservedSlotRead]
