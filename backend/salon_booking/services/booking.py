# backend/salon_booking/services/booking.py
"""
Booking orchestrator.

One booking request:
1. Validate input (no locks, no storage)
2. Expand start time + duration into slots; reject if it won't fit
3. Lock all slots in ascending order (fail fast on a busy slot)
4. Re-check the ledger for the date
5. Write all slot-rows in one transaction
6. Release locks on every path
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Callable
from uuid import uuid4

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.tables import BookedSlots
from . import ledger, working_days
from .errors import PartialBookingError, SlotConflict, StorageUnavailable, ValidationError
from .events import emit_event
from .slots.calendar import is_working_day
from .slots.config import SlotGridConfig, get_grid_config
from .slots.grid import expand_to_slots, fits_before_closing, is_on_grid, slots_needed
from .slots.locks import SlotLockRegistry
from .slots.redis_store import BookedSlotsCache

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_RE = re.compile(r"[0-9]{2}:[0-9]{2}")

MAX_NAME_LENGTH = 100
MAX_PHONE_LENGTH = 20
MAX_SERVICE_LENGTH = 200

ADMIN_CLIENT_NAME = "Admin"


# ── Validation ───────────────────────────────────────────────────────────


def parse_date(value: str) -> date:
    """Parse strict YYYY-MM-DD into a real calendar date."""
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid date") from None


def validate_time(value: str) -> str:
    """Check strict HH:MM with hour 0-23 and minute 0-59."""
    if not isinstance(value, str) or not TIME_RE.fullmatch(value):
        raise ValidationError("Invalid time format. Use HH:MM")
    hours, minutes = (int(part) for part in value.split(":"))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValidationError("Invalid time")
    return value


def _check_length(value: str | None, limit: int, message: str) -> None:
    if value and len(value) > limit:
        raise ValidationError(message)


class BookingService:
    def __init__(
        self,
        db: AsyncSession,
        locks: SlotLockRegistry,
        config: SlotGridConfig | None = None,
        cache: BookedSlotsCache | None = None,
        redis: Redis | None = None,
        enforce_working_days: bool = False,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.locks = locks
        self.config = config or get_grid_config()
        self.cache = cache or BookedSlotsCache(None)
        self.redis = redis
        self.enforce_working_days = enforce_working_days
        self.today = today

    # ── Public API ───────────────────────────────────────────────────────

    async def book(
        self,
        date_str: str,
        time_str: str,
        name: str | None = None,
        phone: str | None = None,
        service: str | None = None,
        duration_minutes: int | None = None,
    ) -> list[BookedSlots]:
        """
        Book every slot a service occupies.

        Raises:
            ValidationError, SlotConflict, StorageUnavailable, PartialBookingError
        """
        slot_date, times = self.validate(date_str, time_str, name, phone, service, duration_minutes)

        if self.enforce_working_days:
            overrides = await working_days.get_overrides(self.db)
            if not is_working_day(slot_date, overrides):
                raise ValidationError(f"{date_str} is not a working day")

        rows = await self._reserve(date_str, times, name, phone, service)

        logger.info(
            f"Booked {date_str} {', '.join(times)} "
            f"(appointment={rows[0].appointment_id})"
        )
        await self.cache.invalidate(date_str)
        await emit_event(self.redis, "booking_created", {
            "date": date_str,
            "times": times,
            "name": name,
            "phone": phone,
            "service": service,
            "appointment_id": rows[0].appointment_id,
        })
        return rows

    async def close_slot(
        self,
        date_str: str,
        time_str: str,
        duration_minutes: int | None = None,
        name: str | None = None,
        service: str | None = None,
    ) -> list[BookedSlots]:
        """Admin: mark slots as taken through the regular booking protocol."""
        return await self.book(
            date_str,
            time_str,
            name=name or ADMIN_CLIENT_NAME,
            service=service,
            duration_minutes=duration_minutes,
        )

    async def release_slot(self, date_str: str, time_str: str) -> None:
        """
        Admin: delete a single reservation. No locking.

        Raises:
            NotFound, StorageUnavailable
        """
        await ledger.delete(self.db, date_str, time_str)
        logger.info(f"Released slot {date_str} {time_str}")
        await self.cache.invalidate(date_str)
        await emit_event(self.redis, "slot_released", {"date": date_str, "time": time_str})

    # ── Steps ────────────────────────────────────────────────────────────

    def validate(
        self,
        date_str: str,
        time_str: str,
        name: str | None = None,
        phone: str | None = None,
        service: str | None = None,
        duration_minutes: int | None = None,
    ) -> tuple[date, list[str]]:
        """Validate a request and return (date, slots to book)."""
        if not date_str or not time_str:
            raise ValidationError("Date and time are required")

        slot_date = parse_date(date_str)
        if slot_date < self.today():
            raise ValidationError("Cannot book a past date")

        validate_time(time_str)

        _check_length(name, MAX_NAME_LENGTH, "Name is too long")
        _check_length(phone, MAX_PHONE_LENGTH, "Phone is too long")
        _check_length(service, MAX_SERVICE_LENGTH, "Service name is too long")

        duration = duration_minutes or self.config.default_duration_minutes
        if duration <= 0 or duration > self.config.max_duration_minutes:
            raise ValidationError("Invalid service duration")

        if not is_on_grid(time_str, self.config):
            raise ValidationError(
                f"Time must be on the {self.config.slot_step_minutes}-minute grid "
                f"between {self.config.opening_time} and {self.config.last_start_time}"
            )

        times = expand_to_slots(time_str, duration, self.config)
        if (
            not fits_before_closing(time_str, duration, self.config)
            or len(times) < slots_needed(duration, self.config)
        ):
            raise ValidationError(
                f"The service won't fit before closing: it would end after "
                f"{self.config.closing_time}. Please choose an earlier time"
            )

        return slot_date, times

    async def _reserve(
        self,
        date_str: str,
        times: list[str],
        name: str | None,
        phone: str | None,
        service: str | None,
    ) -> list[BookedSlots]:
        appointment_id = uuid4().hex
        acquired, busy = self.locks.lock_all(date_str, times, appointment_id)
        if busy is not None:
            raise SlotConflict(
                busy,
                f"Time {busy} is already booked or being processed by another request",
            )

        try:
            taken = await ledger.booked_times(self.db, date_str)
            for time_str in acquired:
                if time_str in taken:
                    raise SlotConflict(time_str)

            booked_at = datetime.now(timezone.utc).isoformat()
            rows = [
                BookedSlots(
                    date=date_str,
                    time=time_str,
                    name=name or None,
                    phone=phone or None,
                    service=service or None,
                    appointment_id=appointment_id,
                    booked_at=booked_at,
                )
                for time_str in acquired
            ]

            try:
                await ledger.insert_many(self.db, rows)
            except StorageUnavailable:
                await self._verify_after_failed_write(date_str, acquired, appointment_id)
                raise

            return rows
        finally:
            self.locks.unlock_all(date_str, acquired, appointment_id)

    async def _verify_after_failed_write(
        self,
        date_str: str,
        times: list[str],
        appointment_id: str,
    ) -> None:
        """Report rows that survived a failed write as a partial booking."""
        try:
            rows = await ledger.list_for_date(self.db, date_str)
        except StorageUnavailable:
            return

        written = [r.time for r in rows if r.appointment_id == appointment_id]
        if written:
            missing = [t for t in times if t not in written]
            logger.error(
                f"Partial booking {appointment_id} on {date_str}: "
                f"written={written} missing={missing}"
            )
            raise PartialBookingError(
                "Booking was saved only partially, please contact the salon",
                written=written,
                missing=missing,
            )
