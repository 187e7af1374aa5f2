# backend/salon_booking/schemas/booked_slots.py

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class BookedSlotCreate(BaseModel):
    """POST /booked-slots body. Formats are checked by the booking service."""
    date: str
    time: str
    name: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, alias="durationMinutes")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class BookedSlotRead(BaseModel):
    date: str
    time: str
    name: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    booked_at: str = Field(serialization_alias="bookedAt")
    appointment_id: Optional[str] = Field(None, serialization_alias="appointmentId")

    model_config = ConfigDict(from_attributes=True)


class BookedSlotsResponse(BaseModel):
    booked_slots: list[BookedSlotRead] = Field(serialization_alias="bookedSlots")


class BookedTimesResponse(BaseModel):
    times: list[str]


class BookingCreatedResponse(BaseModel):
    success: bool = True
    slots: list[BookedSlotRead]


class SuccessResponse(BaseModel):
    success: bool = True
