# backend/salon_booking/services/slots/config.py
"""
Slot grid configuration.

One canonical policy for the working day:
- 30-minute grid starting at opening_time
- a service must END no later than closing_time
- the last bookable start is closing_time - slot_step_minutes
"""

from dataclasses import dataclass
from functools import lru_cache


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time_str(total_minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


@dataclass(frozen=True)
class SlotGridConfig:
    """
    Configuration for the slot grid.

    Attributes:
        slot_step_minutes: Grid step in minutes (15/30/60)
        opening_time: First bookable start "HH:MM"
        closing_time: Latest moment a service may end "HH:MM"
        default_duration_minutes: Duration used when the request has none
        max_duration_minutes: Upper bound for a single booking
    """
    slot_step_minutes: int = 30
    opening_time: str = "09:00"
    closing_time: str = "21:00"
    default_duration_minutes: int = 30
    max_duration_minutes: int = 12 * 60

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.opening_minutes >= self.closing_minutes:
            raise ValueError(
                f"opening_time {self.opening_time} must be before closing_time {self.closing_time}"
            )

    @property
    def opening_minutes(self) -> int:
        return time_str_to_minutes(self.opening_time)

    @property
    def closing_minutes(self) -> int:
        return time_str_to_minutes(self.closing_time)

    @property
    def last_start_minutes(self) -> int:
        """Latest start that still leaves one full slot before closing."""
        return self.closing_minutes - self.slot_step_minutes

    @property
    def last_start_time(self) -> str:
        return minutes_to_time_str(self.last_start_minutes)


@lru_cache
def get_grid_config() -> SlotGridConfig:
    """Get slot grid configuration (singleton)."""
    return SlotGridConfig()
