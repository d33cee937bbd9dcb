"""Reservation management API."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Query, status

from reservation_engine.api.deps import AdminDep, ClockDep, IdentityDep, SessionDep
from reservation_engine.models.reservation import ReservationStatus
from reservation_engine.schemas.reservation import (
    ConfirmPaymentRequest,
    NotesUpdate,
    ReservationCreate,
    ReservationRead,
)
from reservation_engine.services import reservation_service

router = APIRouter()

_MAX_PAGE = 100


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
)
async def create_reservation(
    payload: ReservationCreate,
    session: SessionDep,
    identity: IdentityDep,
    clock: ClockDep,
) -> ReservationRead:
    reservation = await reservation_service.create_reservation(
        session,
        user_id=identity.user_id,
        area_id=payload.area_id,
        time_range=payload.time_range(),
        guest_count=payload.guest_count,
        notes=payload.notes,
        payment_method=payload.payment_method,
        clock=clock,
    )
    return ReservationRead.model_validate(reservation)


@router.get(
    "/mine", response_model=list[ReservationRead], summary="List my reservations"
)
async def list_my_reservations(
    session: SessionDep,
    identity: IdentityDep,
    clock: ClockDep,
    status_filter: ReservationStatus | None = Query(default=None, alias="status"),
    upcoming: bool = False,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1),
) -> list[ReservationRead]:
    listing = reservation_service.list_for_user(
        session,
        user_id=identity.user_id,
        status=status_filter,
        upcoming=upcoming,
        clock=clock,
    )
    rows = await listing.page(skip=skip, limit=min(limit, _MAX_PAGE))
    return [ReservationRead.model_validate(obj) for obj in rows]


@router.get(
    "/admin/all",
    response_model=list[ReservationRead],
    summary="List all reservations (admin)",
)
async def list_all_reservations(
    session: SessionDep,
    _: AdminDep,
    status_filter: ReservationStatus | None = Query(default=None, alias="status"),
    area_id: int | None = None,
    start_from: datetime | None = None,
    start_to: datetime | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1),
) -> list[ReservationRead]:
    listing = reservation_service.list_all(
        session,
        status=status_filter,
        area_id=area_id,
        start_from=start_from,
        start_to=start_to,
    )
    rows = await listing.page(skip=skip, limit=min(limit, _MAX_PAGE))
    return [ReservationRead.model_validate(obj) for obj in rows]


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: SessionDep,
    identity: IdentityDep,
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session,
        reservation_id=reservation_id,
        user_id=identity.user_id,
        is_admin=identity.is_admin,
    )
    return ReservationRead.model_validate(reservation)


@router.post(
    "/{reservation_id}/confirm-payment",
    response_model=ReservationRead,
    summary="Confirm payment",
)
async def confirm_payment(
    reservation_id: uuid.UUID,
    session: SessionDep,
    identity: IdentityDep,
    clock: ClockDep,
    payload: ConfirmPaymentRequest | None = None,
) -> ReservationRead:
    reservation = await reservation_service.confirm_payment(
        session,
        reservation_id=reservation_id,
        user_id=identity.user_id,
        payment_method=payload.payment_method if payload else None,
        clock=clock,
    )
    return ReservationRead.model_validate(reservation)


@router.post(
    "/{reservation_id}/cancel",
    response_model=ReservationRead,
    summary="Cancel reservation",
)
async def cancel_reservation(
    reservation_id: uuid.UUID,
    session: SessionDep,
    identity: IdentityDep,
    clock: ClockDep,
) -> ReservationRead:
    reservation = await reservation_service.cancel_reservation(
        session,
        reservation_id=reservation_id,
        user_id=identity.user_id,
        is_admin=identity.is_admin,
        clock=clock,
    )
    return ReservationRead.model_validate(reservation)


@router.patch(
    "/{reservation_id}/notes",
    response_model=ReservationRead,
    summary="Update reservation notes",
)
async def update_notes(
    reservation_id: uuid.UUID,
    payload: NotesUpdate,
    session: SessionDep,
    identity: IdentityDep,
    clock: ClockDep,
) -> ReservationRead:
    reservation = await reservation_service.update_notes(
        session,
        reservation_id=reservation_id,
        user_id=identity.user_id,
        notes=payload.notes,
        clock=clock,
    )
    return ReservationRead.model_validate(reservation)
