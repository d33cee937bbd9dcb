"""Serialization of check-and-insert per area.

Within one process an ``asyncio.Lock`` per (event loop, area) orders
competing creates. Across processes on PostgreSQL a transaction-scoped
advisory lock does the same, and the exclusion constraint on
``reservations`` rejects anything that still slips through.

SQLite has neither, so against SQLite the API must run as a single
process (one uvicorn worker).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from weakref import WeakKeyDictionary

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

# First key of the two-int advisory lock space, reserved for area bookings.
_ADVISORY_NAMESPACE = 4207

_LOCKS: WeakKeyDictionary[asyncio.AbstractEventLoop, dict[int, asyncio.Lock]] = (
    WeakKeyDictionary()
)


def _lock_for(area_id: int) -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    locks = _LOCKS.setdefault(loop, {})
    lock = locks.get(area_id)
    if lock is None:
        lock = locks[area_id] = asyncio.Lock()
    return lock


@asynccontextmanager
async def area_guard(area_id: int, *, timeout: float) -> AsyncIterator[None]:
    """Hold the in-process lock for ``area_id`` for the duration of the block."""
    lock = _lock_for(area_id)
    try:
        async with asyncio.timeout(timeout):
            await lock.acquire()
    except TimeoutError as exc:
        logger.warning("Timed out after %.1fs waiting for area %s", timeout, area_id)
        raise StorageUnavailableError(
            "Timed out waiting to book this area, please retry"
        ) from exc
    try:
        yield
    finally:
        lock.release()


async def acquire_database_lock(session: AsyncSession, area_id: int) -> None:
    """Take the transaction-scoped advisory lock where the backend has one."""
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(
        text("SELECT pg_advisory_xact_lock(:namespace, :area_id)"),
        {"namespace": _ADVISORY_NAMESPACE, "area_id": area_id},
    )


__all__ = ["acquire_database_lock", "area_guard"]
