"""Reservation models."""
from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from reservation_engine.core.clock import ensure_utc
from reservation_engine.db.base import Base
from reservation_engine.domain.time_range import TimeRange
from reservation_engine.models.mixins import TimestampMixin

NOTES_MAX_LENGTH = 500


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PaymentMethod(str, enum.Enum):
    """Simulated payment channel recorded with the booking."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"


ACTIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.PAID}
)

_ACTIVE_PREDICATE = text("status IN ('pending', 'paid')")


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Reservation(TimestampMixin, Base):
    """A booking of one area for one contiguous time range by one user."""

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_reservations_time_range"),
        CheckConstraint("guest_count >= 1", name="ck_reservations_guest_count"),
        Index(
            "ix_reservations_area_start_active",
            "area_id",
            "start_at",
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        Index("ix_reservations_user_start", "user_id", "start_at"),
        Index("ix_reservations_status_start", "status", "start_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    area_id: Mapped[int] = mapped_column(
        ForeignKey("areas.id", ondelete="RESTRICT"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            native_enum=False,
            length=16,
            values_callable=_enum_values,
        ),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    billed_base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    billed_increment_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(
            PaymentMethod,
            name="payment_method",
            native_enum=False,
            length=16,
            values_callable=_enum_values,
        ),
        default=PaymentMethod.CARD,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(String(NOTES_MAX_LENGTH))
    status_changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(ensure_utc(self.start_at), ensure_utc(self.end_at))

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
