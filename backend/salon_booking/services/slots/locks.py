# backend/salon_booking/services/slots/locks.py
"""
In-process advisory slot locks.

Key: (date, time). Value: (expires_at on the monotonic clock, holder).
A lock is live while now < expires_at; expired locks may be taken over.
Release is holder-checked: a request whose lock expired and was taken
over cannot free the new holder's lock.

This only serialises booking attempts inside one running process.
The booked_slots unique constraint stays the source of correctness.

Runs a sweep loop as an asyncio task in the app lifespan.
"""

import asyncio
import logging
import time
from functools import lru_cache
from typing import Callable, Iterable

from ...config import settings

logger = logging.getLogger(__name__)


class SlotLockRegistry:
    """Map of (date, time) → (expires_at, holder) with TTL-based takeover."""

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._locks: dict[tuple[str, str], tuple[float, str]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, date_str: str, time_str: str) -> bool:
        entry = self._locks.get((date_str, time_str))
        return entry is not None and entry[0] > self._clock()

    def holder_of(self, date_str: str, time_str: str) -> str | None:
        """Holder of a live lock, None when the key is free or expired."""
        entry = self._locks.get((date_str, time_str))
        if entry is None or entry[0] <= self._clock():
            return None
        return entry[1]

    def try_lock(self, date_str: str, time_str: str, holder: str) -> bool:
        """Acquire the lock for `holder` if the key is free or its holder expired."""
        key = (date_str, time_str)
        now = self._clock()
        entry = self._locks.get(key)
        if entry is not None and entry[0] > now:
            return False
        if entry is not None:
            logger.warning(f"Lock {date_str} {time_str} expired, taken over by {holder}")
        self._locks[key] = (now + self.ttl_seconds, holder)
        return True

    def unlock(self, date_str: str, time_str: str, holder: str) -> bool:
        """
        Release the lock if `holder` still owns it.

        Returns False when the key is free or held by someone else; the
        entry is left untouched in that case.
        """
        key = (date_str, time_str)
        entry = self._locks.get(key)
        if entry is None or entry[1] != holder:
            return False
        del self._locks[key]
        return True

    def lock_all(
        self,
        date_str: str,
        times: Iterable[str],
        holder: str,
    ) -> tuple[list[str], str | None]:
        """
        Lock every time in ascending order for `holder`, all or nothing.

        Returns:
            (acquired, busy): acquired is the full list on success; on failure
            it is empty (already released) and busy names the first busy slot.
        """
        acquired: list[str] = []
        for time_str in sorted(times):
            if not self.try_lock(date_str, time_str, holder):
                self.unlock_all(date_str, acquired, holder)
                return [], time_str
            acquired.append(time_str)
        return acquired, None

    def unlock_all(self, date_str: str, times: Iterable[str], holder: str) -> None:
        for time_str in times:
            self.unlock(date_str, time_str, holder)

    def sweep_expired(self) -> int:
        """Drop expired entries. Returns the number removed."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._locks.items() if expires_at <= now]
        for key in expired:
            del self._locks[key]
        return len(expired)


@lru_cache
def get_slot_locks() -> SlotLockRegistry:
    """Process-wide lock registry (singleton)."""
    return SlotLockRegistry(ttl_seconds=settings.lock_ttl_seconds)


async def lock_sweeper_loop(
    registry: SlotLockRegistry,
    interval: float = 300.0,
) -> None:
    """Periodically remove expired locks to bound memory."""
    logger.info("lock_sweeper_loop started")

    try:
        while True:
            await asyncio.sleep(interval)
            try:
                removed = registry.sweep_expired()
                if removed:
                    logger.info(f"lock_sweeper_loop removed {removed} expired locks")
            except Exception:
                logger.exception("lock_sweeper_loop error")
    except asyncio.CancelledError:
        logger.info("lock_sweeper_loop cancelled")
