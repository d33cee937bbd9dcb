"""Per-area schedule and availability API."""

from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Query

from reservation_engine.api.deps import IdentityDep, SessionDep
from reservation_engine.domain.time_range import TimeRange
from reservation_engine.schemas.availability import (
    AvailabilityCheckResponse,
    DailyTimelineRead,
    ReservedSlotRead,
)
from reservation_engine.schemas.reservation import ReservationRead, TimeRangeRead
from reservation_engine.services import (
    area_service,
    availability_service,
    reservation_service,
)

router = APIRouter()


@router.get(
    "/{area_id}/reservations",
    response_model=list[ReservationRead],
    summary="Active reservations of an area in a range",
)
async def list_area_reservations(
    area_id: int,
    session: SessionDep,
    _: IdentityDep,
    start: datetime,
    end: datetime,
) -> list[ReservationRead]:
    await area_service.get_area(session, area_id)
    listing = reservation_service.list_for_area(
        session, area_id=area_id, date_range=TimeRange(start, end)
    )
    return [ReservationRead.model_validate(obj) async for obj in listing]


@router.get(
    "/{area_id}/availability",
    response_model=DailyTimelineRead,
    summary="Reserved and free windows for one day",
)
async def daily_availability(
    area_id: int,
    session: SessionDep,
    _: IdentityDep,
    day: date = Query(alias="date"),
) -> DailyTimelineRead:
    await area_service.get_area(session, area_id)
    timeline = await availability_service.daily_timeline(
        session, area_id=area_id, day=day
    )
    return DailyTimelineRead.model_validate(timeline)


@router.get(
    "/{area_id}/availability/check",
    response_model=AvailabilityCheckResponse,
    summary="Check whether a range is free",
)
async def check_availability(
    area_id: int,
    session: SessionDep,
    _: IdentityDep,
    start: datetime,
    end: datetime,
) -> AvailabilityCheckResponse:
    await area_service.get_area(session, area_id)
    time_range = TimeRange(start, end)
    conflicts = await availability_service.find_conflicts(
        session, area_id=area_id, time_range=time_range
    )
    return AvailabilityCheckResponse(
        area_id=area_id,
        time_range=TimeRangeRead.model_validate(time_range),
        available=not conflicts,
        conflicts=[
            ReservedSlotRead(
                reservation_id=item.id,
                time_range=TimeRangeRead.model_validate(item.time_range),
                status=item.status,
            )
            for item in conflicts
        ],
    )
