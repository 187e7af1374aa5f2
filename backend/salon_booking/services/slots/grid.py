# backend/salon_booking/services/slots/grid.py
"""
Slot grid: which start times exist and which slots a service occupies.

All times are "HH:MM" strings; arithmetic is done in minutes since midnight.
"""

from math import ceil

from .config import SlotGridConfig, get_grid_config, minutes_to_time_str, time_str_to_minutes


def enumerate_slots(
    open_time: str,
    last_start: str,
    step_minutes: int = 30,
) -> list[str]:
    """
    Ordered start times from open_time to last_start, both inclusive.

    >>> enumerate_slots("09:00", "10:00")
    ['09:00', '09:30', '10:00']
    """
    slots = []
    t = time_str_to_minutes(open_time)
    end = time_str_to_minutes(last_start)
    while t <= end:
        slots.append(minutes_to_time_str(t))
        t += step_minutes
    return slots


def day_slots(config: SlotGridConfig | None = None) -> list[str]:
    """All bookable start times of a working day."""
    config = config or get_grid_config()
    return enumerate_slots(config.opening_time, config.last_start_time, config.slot_step_minutes)


def slots_needed(duration_minutes: int, config: SlotGridConfig | None = None) -> int:
    config = config or get_grid_config()
    return ceil(duration_minutes / config.slot_step_minutes)


def expand_to_slots(
    start_time: str,
    duration_minutes: int,
    config: SlotGridConfig | None = None,
) -> list[str]:
    """
    Slots occupied by a service starting at start_time.

    The sequence is truncated (not an error) once a slot would start after the
    last bookable start. Callers compare the length with slots_needed() and
    reject short sequences.
    """
    config = config or get_grid_config()
    step = config.slot_step_minutes

    slots = []
    t = time_str_to_minutes(start_time)
    for _ in range(slots_needed(duration_minutes, config)):
        if t > config.last_start_minutes:
            break
        slots.append(minutes_to_time_str(t))
        t += step
    return slots


def service_end_minutes(start_time: str, duration_minutes: int) -> int:
    return time_str_to_minutes(start_time) + duration_minutes


def fits_before_closing(
    start_time: str,
    duration_minutes: int,
    config: SlotGridConfig | None = None,
) -> bool:
    """True if the service ends no later than closing time."""
    config = config or get_grid_config()
    return service_end_minutes(start_time, duration_minutes) <= config.closing_minutes


def is_on_grid(time_str: str, config: SlotGridConfig | None = None) -> bool:
    """True if time_str is one of the bookable start times."""
    config = config or get_grid_config()
    t = time_str_to_minutes(time_str)
    if t < config.opening_minutes or t > config.last_start_minutes:
        return False
    return (t - config.opening_minutes) % config.slot_step_minutes == 0
