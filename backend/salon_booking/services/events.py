"""
backend/salon_booking/services/events.py

Event emitter: pushes booking events to a Redis queue for an external notifier
(the Telegram bot formats and delivers them).

Queue:
- events:p2p: instant delivery (new booking / released slot)
"""

import json
import logging
import time

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


async def emit_event(redis: Redis | None, event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Failures are logged and never propagate: the booking is already stored.
    """
    if redis is None:
        logger.debug(f"Event {event_type} skipped: Redis not configured")
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        await redis.rpush(EVENTS_QUEUE, json.dumps(event, ensure_ascii=False))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
