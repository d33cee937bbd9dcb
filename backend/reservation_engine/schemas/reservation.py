"""Pydantic schemas for reservations."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_serializer

from reservation_engine.core.clock import ensure_utc
from reservation_engine.domain.time_range import TimeRange
from reservation_engine.models.reservation import (
    PaymentMethod,
    ReservationStatus,
)
from reservation_engine.services.pricing_service import to_money


class TimeRangeRead(BaseModel):
    """Serialized ``[start, end)`` interval."""

    start: datetime
    end: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("start", "end")
    def _as_utc(self, value: datetime) -> str:
        return ensure_utc(value).isoformat()


class ReservationCreate(BaseModel):
    """Payload for creating reservations."""

    area_id: int
    start: datetime
    end: datetime
    guest_count: int
    notes: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CARD

    def time_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)


class NotesUpdate(BaseModel):
    """Replacement notes for a pending reservation."""

    notes: str | None = None


class ConfirmPaymentRequest(BaseModel):
    """Optional payment channel recorded on confirmation."""

    payment_method: PaymentMethod | None = None


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    area_id: int
    user_id: int
    time_range: TimeRangeRead
    guest_count: int
    status: ReservationStatus
    total_price: Decimal
    payment_method: PaymentMethod
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    status_changed_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("total_price")
    def _money(self, value: Decimal) -> str:
        return str(to_money(value))

    @field_serializer("created_at", "updated_at", "status_changed_at")
    def _as_utc(self, value: datetime) -> str:
        return ensure_utc(value).isoformat()
