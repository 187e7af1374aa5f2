import logging

from redis.asyncio import Redis

from .config import settings

logger = logging.getLogger(__name__)


def create_redis_client() -> Redis | None:
    """Redis client for cache and events, or None when REDIS_URL is unset."""
    if not settings.redis_url:
        logger.warning("REDIS_URL not set: booked slots cache and events disabled")
        return None
    return Redis.from_url(settings.redis_url, decode_responses=True)


redis_client = create_redis_client()


def get_redis() -> Redis | None:
    return redis_client
