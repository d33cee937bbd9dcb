"""Seed a small catalog of bookable areas."""
from __future__ import annotations

import asyncio

from sqlalchemy import select

from reservation_engine.db.session import get_sessionmaker
from reservation_engine.models.area import Area

DEFAULT_AREAS = (
    ("Garden Terrace", "Covered terrace next to the garden", 2, 12),
    ("Private Dining Room", "Closed room for small parties", 4, 16),
    ("Rooftop Lounge", None, 6, 40),
)


async def seed_areas() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        existing = set((await session.execute(select(Area.name))).scalars())
        created = 0
        for name, description, min_capacity, max_capacity in DEFAULT_AREAS:
            if name in existing:
                continue
            session.add(
                Area(
                    name=name,
                    description=description,
                    min_capacity=min_capacity,
                    max_capacity=max_capacity,
                )
            )
            created += 1
        if created:
            await session.commit()
        print(f"Seeded {created} area(s).")


def main() -> None:
    asyncio.run(seed_areas())


if __name__ == "__main__":
    main()
