# backend/salon_booking/schemas/working_days.py

from typing import Literal
from pydantic import BaseModel, ConfigDict

DayStatus = Literal["working", "off"]


class WorkingDaySet(BaseModel):
    status: DayStatus

    model_config = ConfigDict(extra="forbid")


class WorkingDaySetResponse(BaseModel):
    success: bool = True
    date: str
    status: DayStatus


class WorkingDaysResponse(BaseModel):
    overrides: dict[str, DayStatus]


class CalendarDay(BaseModel):
    date: str
    working: bool
    source: Literal["override", "calendar"]


class WorkingDaysCalendarResponse(BaseModel):
    year: int
    month: int
    days: list[CalendarDay]
