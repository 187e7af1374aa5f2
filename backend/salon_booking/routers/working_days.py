# backend/salon_booking/routers/working_days.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import require_admin
from ..schemas.booked_slots import SuccessResponse
from ..schemas.working_days import (
    WorkingDaySet,
    WorkingDaySetResponse,
    WorkingDaysCalendarResponse,
    WorkingDaysResponse,
)
from ..services import working_days
from ..services.booking import parse_date
from ..services.slots.calendar import month_working_days

router = APIRouter(prefix="/working-days", tags=["working-days"])


@router.get("", response_model=WorkingDaysResponse)
async def list_working_days(db: AsyncSession = Depends(get_db)):
    return WorkingDaysResponse(overrides=await working_days.get_overrides(db))


@router.get("/calendar", response_model=WorkingDaysCalendarResponse)
async def get_working_days_calendar(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    """Effective working/off status of every day in a month."""
    overrides = await working_days.get_overrides(db)
    return WorkingDaysCalendarResponse(
        year=year,
        month=month,
        days=month_working_days(year, month, overrides),
    )


@router.post(
    "/{target_date}",
    response_model=WorkingDaySetResponse,
    dependencies=[Depends(require_admin)],
)
async def set_working_day(
    target_date: str,
    data: WorkingDaySet,
    db: AsyncSession = Depends(get_db),
):
    parse_date(target_date)
    await working_days.set_override(db, target_date, data.status)
    return WorkingDaySetResponse(date=target_date, status=data.status)


@router.delete(
    "/{target_date}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def clear_working_day(target_date: str, db: AsyncSession = Depends(get_db)):
    parse_date(target_date)
    await working_days.clear_override(db, target_date)
    return SuccessResponse()
