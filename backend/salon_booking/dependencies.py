import hmac

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .redis_client import get_redis
from .services.booking import BookingService
from .services.errors import AdminNotConfigured, Unauthorized
from .services.slots.config import get_grid_config
from .services.slots.locks import SlotLockRegistry, get_slot_locks
from .services.slots.redis_store import BookedSlotsCache


def require_admin(x_admin_token: str | None = Header(None)) -> None:
    """Static shared-secret check for admin endpoints."""
    expected = settings.admin_token
    if not expected:
        raise AdminNotConfigured("Admin panel is not configured")

    if not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode(), expected.encode()
    ):
        raise Unauthorized("Unauthorized")


def get_booked_slots_cache(redis: Redis | None = Depends(get_redis)) -> BookedSlotsCache:
    return BookedSlotsCache(redis, ttl_seconds=settings.cache_ttl_seconds)


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    locks: SlotLockRegistry = Depends(get_slot_locks),
    cache: BookedSlotsCache = Depends(get_booked_slots_cache),
    redis: Redis | None = Depends(get_redis),
) -> BookingService:
    return BookingService(
        db=db,
        locks=locks,
        config=get_grid_config(),
        cache=cache,
        redis=redis,
        enforce_working_days=settings.enforce_working_days,
    )
