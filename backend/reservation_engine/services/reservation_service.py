"""Reservation management service helpers."""
from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Collection
from datetime import datetime, timedelta

from sqlalchemy import Select, and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_engine.core.clock import Clock, ensure_utc, get_clock
from reservation_engine.core.config import Settings, get_settings
from reservation_engine.core.errors import (
    AreaInactiveError,
    CapacityExceededError,
    ForbiddenError,
    InvalidBookingWindowError,
    InvalidDurationError,
    InvalidNotesError,
    NotFoundError,
    ReservationNotEditableError,
    SlotUnavailableError,
)
from reservation_engine.db.retry import run_with_retry
from reservation_engine.domain.time_range import TimeRange
from reservation_engine.models.reservation import (
    ACTIVE_STATUSES,
    NOTES_MAX_LENGTH,
    PaymentMethod,
    Reservation,
    ReservationStatus,
)
from reservation_engine.services import (
    area_locks,
    area_service,
    availability_service,
    reservation_lifecycle,
)
from reservation_engine.services.pricing_service import PricingPolicy

logger = logging.getLogger(__name__)

_EXCLUSION_VIOLATION = "23P01"
_OVERLAP_CONSTRAINT = "ex_reservations_area_active_overlap"


class ReservationListing:
    """Lazy, finite, restartable view over reservations.

    Rows come back ordered by ``(start_at, id)``. Each iteration re-runs the
    query with keyset paging, so iterating twice starts over from the first
    row and concurrent inserts never shift a page already handed out.
    """

    def __init__(
        self,
        session: AsyncSession,
        stmt: Select[tuple[Reservation]],
        *,
        page_size: int = 100,
    ) -> None:
        self._session = session
        self._stmt = stmt
        self._page_size = page_size

    def _ordered(self) -> Select[tuple[Reservation]]:
        return self._stmt.order_by(Reservation.start_at, Reservation.id)

    def __aiter__(self) -> AsyncIterator[Reservation]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Reservation]:
        last: tuple[datetime, uuid.UUID] | None = None
        while True:
            stmt = self._ordered()
            if last is not None:
                last_start, last_id = last
                stmt = stmt.where(
                    or_(
                        Reservation.start_at > last_start,
                        and_(
                            Reservation.start_at == last_start,
                            Reservation.id > last_id,
                        ),
                    )
                )
            result = await self._session.execute(stmt.limit(self._page_size))
            rows = result.scalars().all()
            for row in rows:
                yield row
            if len(rows) < self._page_size:
                return
            last = (rows[-1].start_at, rows[-1].id)

    async def page(self, *, skip: int = 0, limit: int = 50) -> list[Reservation]:
        result = await self._session.execute(
            self._ordered().offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def all(self) -> list[Reservation]:
        return [row async for row in self]

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self._stmt.order_by(None).subquery())
        return (await self._session.execute(stmt)).scalar_one()


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    notes = notes.strip()
    if len(notes) > NOTES_MAX_LENGTH:
        raise InvalidNotesError(
            f"Notes cannot exceed {NOTES_MAX_LENGTH} characters"
        )
    return notes or None


def _validate_booking_window(
    time_range: TimeRange, *, now: datetime, settings: Settings
) -> None:
    if time_range.start <= now:
        raise InvalidBookingWindowError("Reservation start must be in the future")
    latest_start = now + timedelta(days=settings.max_advance_days)
    if time_range.start > latest_start:
        raise InvalidBookingWindowError(
            f"Reservations can be made at most {settings.max_advance_days} days in advance"
        )


def _validate_duration(time_range: TimeRange, settings: Settings) -> None:
    if time_range.duration_minutes() > settings.max_reservation_minutes:
        raise InvalidDurationError(
            f"Reservations cannot last longer than {settings.max_reservation_minutes} minutes"
        )


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == _EXCLUSION_VIOLATION or _OVERLAP_CONSTRAINT in str(exc)


async def _load_reservation(
    session: AsyncSession, reservation_id: uuid.UUID
) -> Reservation:
    reservation = await session.get(
        Reservation, reservation_id, populate_existing=True
    )
    if reservation is None:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return reservation


async def create_reservation(
    session: AsyncSession,
    *,
    user_id: int,
    area_id: int,
    time_range: TimeRange,
    guest_count: int,
    notes: str | None = None,
    payment_method: PaymentMethod = PaymentMethod.CARD,
    clock: Clock | None = None,
    settings: Settings | None = None,
) -> Reservation:
    """Book ``area_id`` for ``time_range`` as a new pending reservation.

    Checks run in a fixed order and the first failure wins: area existence
    and active flag, booking window, duration, guest count, notes, then
    availability. The availability check, insert and commit happen under the
    per-area guard so two overlapping requests cannot both succeed.
    """
    settings = settings or get_settings()
    clock = clock or get_clock()

    area = await area_service.get_area(session, area_id)
    if not area.is_active:
        raise AreaInactiveError()
    now = ensure_utc(clock.now())
    _validate_booking_window(time_range, now=now, settings=settings)
    _validate_duration(time_range, settings)
    if not area.admits(guest_count):
        raise CapacityExceededError(
            f"Guest count must be between {area.min_capacity} and {area.max_capacity}"
        )
    cleaned_notes = _clean_notes(notes)

    policy = PricingPolicy.from_settings(settings)
    total_price = policy.price_for(time_range)

    async def _check_and_insert() -> Reservation:
        await area_locks.acquire_database_lock(session, area_id)
        available = await availability_service.is_available(
            session, area_id=area_id, time_range=time_range
        )
        if not available:
            raise SlotUnavailableError()
        reservation = Reservation(
            area_id=area_id,
            user_id=user_id,
            start_at=time_range.start,
            end_at=time_range.end,
            guest_count=guest_count,
            status=ReservationStatus.PENDING,
            total_price=total_price,
            billed_base_price=policy.base_price,
            billed_increment_price=policy.increment_price,
            payment_method=payment_method,
            notes=cleaned_notes,
            created_at=now,
            updated_at=now,
            status_changed_at=now,
        )
        session.add(reservation)
        try:
            await session.commit()
        except IntegrityError as exc:
            if _is_overlap_violation(exc):
                raise SlotUnavailableError() from exc
            raise
        return reservation

    try:
        async with area_locks.area_guard(area_id, timeout=settings.lock_timeout_seconds):
            reservation = await run_with_retry(
                session, _check_and_insert, label="create reservation"
            )
    except SlotUnavailableError:
        logger.info(
            "Area %s already taken for %s - %s",
            area_id,
            time_range.start.isoformat(),
            time_range.end.isoformat(),
        )
        raise

    await session.refresh(reservation)
    logger.info(
        "Reservation %s created for user %s in area %s (%s)",
        reservation.id,
        user_id,
        area_id,
        reservation.total_price,
    )
    return reservation


async def get_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    user_id: int,
    is_admin: bool = False,
) -> Reservation:
    """Fetch a reservation visible to its owner or an admin."""
    reservation = await _load_reservation(session, reservation_id)
    if not is_admin and reservation.user_id != user_id:
        raise ForbiddenError("You are not allowed to view this reservation")
    return reservation


async def _transition(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    target: ReservationStatus,
    user_id: int,
    is_admin: bool,
    clock: Clock,
    changes: dict[str, object] | None = None,
) -> Reservation:
    async def _apply() -> Reservation:
        reservation = await _load_reservation(session, reservation_id)
        if not is_admin and reservation.user_id != user_id:
            raise ForbiddenError()
        await reservation_lifecycle.apply_transition(
            session, reservation, target, now=clock.now(), changes=changes
        )
        await session.commit()
        return reservation

    reservation = await run_with_retry(
        session, _apply, label=f"transition reservation to {target.value}"
    )
    await session.refresh(reservation)
    logger.info(
        "Reservation %s is now %s (by user %s%s)",
        reservation.id,
        reservation.status.value,
        user_id,
        ", admin" if is_admin else "",
    )
    return reservation


async def confirm_payment(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    user_id: int,
    payment_method: PaymentMethod | None = None,
    clock: Clock | None = None,
) -> Reservation:
    """Record the owner's payment: ``pending -> paid`` before the start time."""
    changes = {"payment_method": payment_method} if payment_method else None
    return await _transition(
        session,
        reservation_id=reservation_id,
        target=ReservationStatus.PAID,
        user_id=user_id,
        is_admin=False,
        clock=clock or get_clock(),
        changes=changes,
    )


async def cancel_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    user_id: int,
    is_admin: bool = False,
    clock: Clock | None = None,
) -> Reservation:
    """Cancel a pending or paid reservation before it starts."""
    return await _transition(
        session,
        reservation_id=reservation_id,
        target=ReservationStatus.CANCELLED,
        user_id=user_id,
        is_admin=is_admin,
        clock=clock or get_clock(),
    )


async def update_notes(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    user_id: int,
    notes: str | None,
    is_admin: bool = False,
    clock: Clock | None = None,
) -> Reservation:
    """Replace the notes of a reservation that is still pending."""
    clock = clock or get_clock()
    cleaned_notes = _clean_notes(notes)

    async def _apply() -> Reservation:
        reservation = await _load_reservation(session, reservation_id)
        if not is_admin and reservation.user_id != user_id:
            raise ForbiddenError()
        if reservation.status is not ReservationStatus.PENDING:
            raise ReservationNotEditableError()
        result = await session.execute(
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status == ReservationStatus.PENDING,
            )
            .values(notes=cleaned_notes, updated_at=ensure_utc(clock.now()))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ReservationNotEditableError()
        await session.commit()
        return reservation

    reservation = await run_with_retry(session, _apply, label="update reservation notes")
    await session.refresh(reservation)
    return reservation


def list_for_user(
    session: AsyncSession,
    *,
    user_id: int,
    status: ReservationStatus | None = None,
    upcoming: bool = False,
    clock: Clock | None = None,
) -> ReservationListing:
    """Reservations of ``user_id``, soonest first."""
    stmt = select(Reservation).where(Reservation.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    if upcoming:
        now = ensure_utc((clock or get_clock()).now())
        stmt = stmt.where(Reservation.start_at > now)
    return ReservationListing(session, stmt)


def list_for_area(
    session: AsyncSession,
    *,
    area_id: int,
    date_range: TimeRange,
    statuses: Collection[ReservationStatus] = ACTIVE_STATUSES,
) -> ReservationListing:
    """Reservations of ``area_id`` overlapping ``date_range``, soonest first."""
    stmt = select(Reservation).where(
        Reservation.area_id == area_id,
        Reservation.start_at < date_range.end,
        Reservation.end_at > date_range.start,
    )
    if statuses:
        stmt = stmt.where(Reservation.status.in_(list(statuses)))
    return ReservationListing(session, stmt)


def list_all(
    session: AsyncSession,
    *,
    status: ReservationStatus | None = None,
    area_id: int | None = None,
    start_from: datetime | None = None,
    start_to: datetime | None = None,
) -> ReservationListing:
    """Admin listing across users, filtered by status, area and start window."""
    stmt = select(Reservation)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    if area_id is not None:
        stmt = stmt.where(Reservation.area_id == area_id)
    if start_from is not None:
        stmt = stmt.where(Reservation.start_at >= ensure_utc(start_from))
    if start_to is not None:
        stmt = stmt.where(Reservation.start_at <= ensure_utc(start_to))
    return ReservationListing(session, stmt)


__all__ = [
    "ReservationListing",
    "cancel_reservation",
    "confirm_payment",
    "create_reservation",
    "get_reservation",
    "list_all",
    "list_for_area",
    "list_for_user",
    "update_notes",
]
