# backend/salon_booking/services/slots/calendar.py
"""
Calendar policy: base working / non-working classification of a date.

Three regimes:
✓ Explicit month (December): enumerated working day-numbers
✓ Holiday month (January): days off, a resumption day, then a 4-day cycle
✓ Other months: 4-day cycle (2 working, 2 off) counted from the last
  working day of the holiday month

Does NOT contain:
✗ Admin overrides (see services/working_days.py)
✗ Bookings
"""

from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache


@dataclass(frozen=True)
class CalendarPolicy:
    explicit_month: int = 12
    explicit_working_days: tuple[int, ...] = (
        3, 4, 7, 8, 11, 12, 15, 16, 19, 20, 23, 24, 27, 28,
    )

    holiday_month: int = 1
    holiday_first_day: int = 1
    holiday_last_day: int = 8
    resumption_day: int = 9
    cycle_anchor_day: int = 12

    cycle_length: int = 4
    cycle_working_days: int = 2

    def _in_working_phase(self, phase: int) -> bool:
        return phase < self.cycle_working_days

    def is_holiday_month_working(self, day: int) -> bool:
        if self.holiday_first_day <= day <= self.holiday_last_day:
            return False
        if day == self.resumption_day:
            return True
        if day >= self.cycle_anchor_day:
            return self._in_working_phase((day - self.cycle_anchor_day) % self.cycle_length)
        return False

    def last_holiday_month_working_day(self, year: int) -> date:
        """Last working day of the holiday month, derived from its own rule."""
        if self.holiday_month == 12:
            next_month = date(year + 1, 1, 1)
        else:
            next_month = date(year, self.holiday_month + 1, 1)
        dt = next_month - timedelta(days=1)
        while dt.day > 1 and not self.is_holiday_month_working(dt.day):
            dt -= timedelta(days=1)
        return dt

    def is_cycle_working(self, dt: date) -> bool:
        anchor = self.last_holiday_month_working_day(dt.year)
        offset = (dt - anchor).days
        # offset 1 is the first day after the anchor pair; the working pair
        # closes each cycle
        phase = (offset - 1) % self.cycle_length
        return phase >= self.cycle_length - self.cycle_working_days


@lru_cache
def get_calendar_policy() -> CalendarPolicy:
    return CalendarPolicy()


def is_base_working_day(dt: date, policy: CalendarPolicy | None = None) -> bool:
    """Base working-day classification, ignoring admin overrides."""
    policy = policy or get_calendar_policy()

    if dt.month == policy.explicit_month:
        return dt.day in policy.explicit_working_days

    if dt.month == policy.holiday_month:
        return policy.is_holiday_month_working(dt.day)

    return policy.is_cycle_working(dt)


def is_working_day(
    dt: date,
    overrides: dict[str, str],
    policy: CalendarPolicy | None = None,
) -> bool:
    """Effective status: admin override if present, else calendar policy."""
    status = overrides.get(dt.isoformat())
    if status is not None:
        return status == "working"
    return is_base_working_day(dt, policy)


def month_days(year: int, month: int) -> list[date]:
    current = date(year, month, 1)
    days = []
    while current.month == month:
        days.append(current)
        current += timedelta(days=1)
    return days


def month_working_days(
    year: int,
    month: int,
    overrides: dict[str, str],
    policy: CalendarPolicy | None = None,
) -> list[dict]:
    """Per-day classification of a month, with the source of each decision."""
    result = []
    for dt in month_days(year, month):
        key = dt.isoformat()
        if key in overrides:
            result.append({
                "date": key,
                "working": overrides[key] == "working",
                "source": "override",
            })
        else:
            result.append({
                "date": key,
                "working": is_base_working_day(dt, policy),
                "source": "calendar",
            })
    return result
