# backend/salon_booking/services/slots/__init__.py
"""
Slots module.

Calendar policy: base working / non-working days
Grid: bookable start times and service expansion
Locks: in-process advisory locks per (date, time)
Redis store: short-lived display cache of booked slots
"""

from .config import SlotGridConfig, get_grid_config
from .calendar import CalendarPolicy, is_base_working_day, is_working_day
from .grid import enumerate_slots, expand_to_slots, fits_before_closing, is_on_grid
from .locks import SlotLockRegistry, get_slot_locks
from .redis_store import BookedSlotsCache

__all__ = [
    "SlotGridConfig",
    "get_grid_config",
    "CalendarPolicy",
    "is_base_working_day",
    "is_working_day",
    "enumerate_slots",
    "expand_to_slots",
    "fits_before_closing",
    "is_on_grid",
    "SlotLockRegistry",
    "get_slot_locks",
    "BookedSlotsCache",
]
