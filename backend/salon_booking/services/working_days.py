# backend/salon_booking/services/working_days.py
"""
Working-day overrides: admin-set "working" / "off" per date.

Effective status = override if present, else calendar policy.
Nothing is cached in process; callers see only committed state.
"""

import logging
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.tables import WorkingDays
from .errors import StorageUnavailable, ValidationError
from .slots.calendar import is_working_day

logger = logging.getLogger(__name__)

DAY_STATUSES = ("working", "off")


async def get_overrides(db: AsyncSession) -> dict[str, str]:
    try:
        result = await db.execute(select(WorkingDays).order_by(WorkingDays.date))
    except SQLAlchemyError as e:
        logger.error(f"Failed to load working days: {e}")
        raise StorageUnavailable("Failed to load working days") from e
    return {row.date: row.status for row in result.scalars().all()}


async def set_override(db: AsyncSession, date_str: str, status: str) -> None:
    """Create or replace the override for a date."""
    if status not in DAY_STATUSES:
        raise ValidationError('Status must be "working" or "off"')

    try:
        obj = await db.get(WorkingDays, date_str)
        if obj is None:
            db.add(WorkingDays(date=date_str, status=status))
        else:
            obj.status = status
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to save working day {date_str}: {e}")
        raise StorageUnavailable("Failed to save day status") from e

    logger.info(f"Working day override set: {date_str} → {status}")


async def clear_override(db: AsyncSession, date_str: str) -> bool:
    """
    Remove the override for a date (revert to calendar policy).

    Idempotent: succeeds whether or not an override existed.
    Returns True if a row was removed.
    """
    try:
        result = await db.execute(delete(WorkingDays).where(WorkingDays.date == date_str))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to delete working day {date_str}: {e}")
        raise StorageUnavailable("Failed to delete override") from e

    removed = result.rowcount > 0
    if removed:
        logger.info(f"Working day override cleared: {date_str}")
    return removed


async def get_effective_status(db: AsyncSession, dt: date) -> str:
    overrides = await get_overrides(db)
    return "working" if is_working_day(dt, overrides) else "off"
