"""Background expiry of unpaid reservations."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reservation_engine.core.clock import Clock, ensure_utc, get_clock
from reservation_engine.core.config import Settings, get_settings
from reservation_engine.core.errors import (
    InvalidStatusTransitionError,
    NotFoundError,
)
from reservation_engine.db.retry import run_with_retry
from reservation_engine.models.reservation import Reservation, ReservationStatus
from reservation_engine.services import reservation_lifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReaperResult:
    """Outcome of one reaper pass."""

    examined: int = 0
    expired: int = 0
    skipped: int = 0


class ExpiryReaper:
    """Move ``pending`` reservations whose start has passed to ``expired``.

    Each candidate is expired in its own transaction with a compare-and-swap
    on ``pending``, so a payment or cancellation that lands first simply
    wins and the record is counted as skipped.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._clock = clock or get_clock()
        self._settings = settings or get_settings()
        self._task: asyncio.Task[None] | None = None

    @property
    def grace(self) -> timedelta:
        return timedelta(minutes=self._settings.expiry_grace_minutes)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _candidates(self) -> list[uuid.UUID]:
        cutoff = ensure_utc(self._clock.now()) + self.grace
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(Reservation.id)
                .where(
                    Reservation.status == ReservationStatus.PENDING,
                    Reservation.start_at <= cutoff,
                )
                .order_by(Reservation.start_at, Reservation.id)
            )
            return list(result.scalars().all())

    async def _expire(self, reservation_id: uuid.UUID) -> bool:
        async with self._sessionmaker() as session:

            async def _apply() -> bool:
                reservation = await session.get(
                    Reservation, reservation_id, populate_existing=True
                )
                if reservation is None:
                    raise NotFoundError(f"Reservation {reservation_id} not found")
                await reservation_lifecycle.apply_transition(
                    session,
                    reservation,
                    ReservationStatus.EXPIRED,
                    now=self._clock.now(),
                    expiry_grace=self.grace,
                )
                await session.commit()
                return True

            try:
                return await run_with_retry(session, _apply, label="expire reservation")
            except (InvalidStatusTransitionError, NotFoundError) as exc:
                logger.debug("Skipped expiring reservation %s: %s", reservation_id, exc)
                return False

    async def run_once(self) -> ReaperResult:
        """Expire every eligible reservation once and report the counts."""
        candidates = await self._candidates()
        expired = 0
        for reservation_id in candidates:
            if await self._expire(reservation_id):
                expired += 1
                logger.info("Reservation %s expired unpaid", reservation_id)
        result = ReaperResult(
            examined=len(candidates),
            expired=expired,
            skipped=len(candidates) - expired,
        )
        if result.examined:
            logger.info(
                "Reaper pass examined %d, expired %d, skipped %d",
                result.examined,
                result.expired,
                result.skipped,
            )
        return result

    async def _loop(self) -> None:
        interval = self._settings.reaper_interval_seconds
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Reaper pass failed; retrying in %.0fs", interval)
            await asyncio.sleep(interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="expiry-reaper")
        logger.info(
            "Expiry reaper started (every %.0fs, grace %s)",
            self._settings.reaper_interval_seconds,
            self.grace,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry reaper stopped")


__all__ = ["ExpiryReaper", "ReaperResult"]
