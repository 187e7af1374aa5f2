# backend/salon_booking/services/slots/redis_store.py
"""
Redis read-through cache for booked slots (display only).

Key format:
    cache:booked_slots          → JSON list of all retained reservations
    cache:booked_slots:{date}   → JSON list of booked "HH:MM" for a date

Entries expire after a short TTL and are dropped after every write.
The booking path never reads this cache.

A GET that read the database before a write committed may store its
result after that write's invalidation. Such an entry stays stale for at
most the TTL; display data accepts that window.
"""

import json
import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class BookedSlotsCache:
    """Redis wrapper for booked-slots display data."""

    KEY_PREFIX = "cache:booked_slots"

    def __init__(self, redis: Redis | None, ttl_seconds: int = 30):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, date_str: str | None = None) -> str:
        if date_str is None:
            return self.KEY_PREFIX
        return f"{self.KEY_PREFIX}:{date_str}"

    # ── Read ─────────────────────────────────────────────────────────────

    async def get(self, date_str: str | None = None) -> list | None:
        """Cached payload, or None on miss / no Redis / Redis error."""
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(self._key(date_str))
        except RedisError as e:
            logger.warning(f"Booked slots cache read failed: {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    # ── Write ────────────────────────────────────────────────────────────

    async def set(self, payload: list, date_str: str | None = None) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(self._key(date_str), self.ttl_seconds, json.dumps(payload))
        except RedisError as e:
            logger.warning(f"Booked slots cache write failed: {e}")

    # ── Delete ───────────────────────────────────────────────────────────

    async def invalidate(self, date_str: str) -> None:
        """Drop the full list and the per-date entry after a write."""
        if self.redis is None:
            return
        try:
            await self.redis.delete(self._key(), self._key(date_str))
        except RedisError as e:
            logger.error(f"Booked slots cache invalidation failed for {date_str}: {e}")
