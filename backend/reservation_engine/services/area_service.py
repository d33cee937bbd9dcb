"""Read-only access to the area catalog."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.core.errors import NotFoundError
from reservation_engine.models.area import Area


@dataclass(frozen=True, slots=True)
class AreaDescriptor:
    """Snapshot of the catalog fields the booking rules depend on."""

    id: int
    min_capacity: int
    max_capacity: int
    is_active: bool

    def admits(self, guest_count: int) -> bool:
        return self.min_capacity <= guest_count <= self.max_capacity


async def get_area(session: AsyncSession, area_id: int) -> AreaDescriptor:
    """Return the descriptor for ``area_id`` or raise :class:`NotFoundError`."""
    result = await session.execute(
        select(Area.id, Area.min_capacity, Area.max_capacity, Area.is_active).where(
            Area.id == area_id
        )
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(f"Area {area_id} not found")
    return AreaDescriptor(
        id=row.id,
        min_capacity=row.min_capacity,
        max_capacity=row.max_capacity,
        is_active=row.is_active,
    )
