"""Bookable area descriptors (read-only to the reservation engine)."""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reservation_engine.db.base import Base
from reservation_engine.models.mixins import TimestampMixin


class Area(TimestampMixin, Base):
    """A room or terrace guests can book as a whole."""

    __tablename__ = "areas"
    __table_args__ = (
        CheckConstraint("min_capacity >= 1", name="ck_areas_min_capacity"),
        CheckConstraint("min_capacity <= max_capacity", name="ck_areas_capacity_bounds"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500))
    min_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
