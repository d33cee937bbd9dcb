"""Test fixtures for the reservation engine."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ["REAPER_ENABLED"] = "false"

from reservation_engine.api import deps
from reservation_engine.core.clock import ManualClock
from reservation_engine.core.config import get_settings
from reservation_engine.db.base import Base
from reservation_engine.db.session import dispose_engine, get_sessionmaker
from reservation_engine.main import app
from reservation_engine.models import Area

# Scenario clock: midnight UTC, bookings land later the same day.
CLOCK_START = datetime(2025, 6, 1, 0, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)
    get_settings.cache_clear()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(CLOCK_START)


@pytest_asyncio.fixture()
async def areas(reset_database: None, db_url: str) -> dict[str, int]:
    """Seed one bookable area, one closed area and a roomy hall."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        terrace = Area(name="Terrace", min_capacity=2, max_capacity=10)
        closed = Area(name="Cellar", min_capacity=1, max_capacity=6, is_active=False)
        hall = Area(name="Hall", min_capacity=1, max_capacity=80)
        session.add_all([terrace, closed, hall])
        await session.commit()
        return {"terrace": terrace.id, "closed": closed.id, "hall": hall.id}


@pytest_asyncio.fixture()
async def session(areas: dict[str, int], db_url: str) -> AsyncIterator[AsyncSession]:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        yield session


@pytest_asyncio.fixture()
async def client(
    areas: dict[str, int], clock: ManualClock
) -> AsyncIterator[AsyncClient]:
    """Async client with the scenario clock injected."""
    app.dependency_overrides[deps.get_clock] = lambda: clock
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(deps.get_clock, None)
