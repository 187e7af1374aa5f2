# backend/salon_booking/routers/booked_slots.py
"""
Booked slots API.

GET    /booked-slots              - all retained reservations (?date= filter)
GET    /booked-slots/{date}       - booked times for a date
POST   /booked-slots              - book a service (one row per 30-min slot)
POST   /booked-slots/close        - admin: close slots
DELETE /booked-slots/{date}/{time} - admin: release a slot
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..dependencies import get_booked_slots_cache, get_booking_service, require_admin
from ..schemas.booked_slots import (
    BookedSlotCreate,
    BookedSlotRead,
    BookedSlotsResponse,
    BookedTimesResponse,
    BookingCreatedResponse,
    SuccessResponse,
)
from ..services import ledger
from ..services.booking import BookingService, parse_date
from ..services.slots.redis_store import BookedSlotsCache

router = APIRouter(prefix="/booked-slots", tags=["booked-slots"])


def _cutoff() -> date:
    return ledger.retention_cutoff(date.today(), settings.retention_months)


async def _load_retained(db: AsyncSession, cache: BookedSlotsCache) -> list[BookedSlotRead]:
    cached = await cache.get()
    if cached is not None:
        return [BookedSlotRead(**item) for item in cached]

    rows = await ledger.list_all(db, since=_cutoff())
    slots = [BookedSlotRead.model_validate(row) for row in rows]
    await cache.set([s.model_dump() for s in slots])
    return slots


@router.get("", response_model=BookedSlotsResponse)
async def list_booked_slots(
    target_date: str | None = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    cache: BookedSlotsCache = Depends(get_booked_slots_cache),
):
    slots = await _load_retained(db, cache)
    if target_date is not None:
        slots = [s for s in slots if s.date == target_date]
    return BookedSlotsResponse(booked_slots=slots)


@router.get("/{target_date}", response_model=BookedTimesResponse)
async def get_booked_times(
    target_date: str,
    db: AsyncSession = Depends(get_db),
    cache: BookedSlotsCache = Depends(get_booked_slots_cache),
):
    if parse_date(target_date) < _cutoff():
        return BookedTimesResponse(times=[])

    cached = await cache.get(target_date)
    if cached is not None:
        return BookedTimesResponse(times=cached)

    times = [row.time for row in await ledger.list_for_date(db, target_date)]
    await cache.set(times, target_date)
    return BookedTimesResponse(times=times)


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookedSlotCreate,
    service: BookingService = Depends(get_booking_service),
):
    rows = await service.book(
        data.date,
        data.time,
        name=data.name,
        phone=data.phone,
        service=data.service,
        duration_minutes=data.duration_minutes,
    )
    return BookingCreatedResponse(slots=[BookedSlotRead.model_validate(r) for r in rows])


@router.post(
    "/close",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def close_slots(
    data: BookedSlotCreate,
    service: BookingService = Depends(get_booking_service),
):
    rows = await service.close_slot(
        data.date,
        data.time,
        duration_minutes=data.duration_minutes,
        name=data.name,
        service=data.service,
    )
    return BookingCreatedResponse(slots=[BookedSlotRead.model_validate(r) for r in rows])


@router.delete(
    "/{target_date}/{target_time}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def release_slot(
    target_date: str,
    target_time: str,
    service: BookingService = Depends(get_booking_service),
):
    await service.release_slot(target_date, target_time)
    return SuccessResponse()
