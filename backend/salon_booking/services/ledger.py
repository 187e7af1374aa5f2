# backend/salon_booking/services/ledger.py
"""
Booking ledger: persisted (date, time) reservations.

Uniqueness of (date, time) is enforced by the database constraint
uq_booked_slots_date_time, not by a read-before-write check.
Retention filtering happens at query time only; rows are never purged here.
"""

import calendar
import logging
from datetime import date

from sqlalchemy import delete as sa_delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.tables import BookedSlots
from .errors import NotFound, SlotConflict, StorageUnavailable

logger = logging.getLogger(__name__)


def retention_cutoff(today: date, months: int = 3) -> date:
    """Same day `months` months earlier, clamped to the month's last day."""
    month_index = today.year * 12 + (today.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


# ── Read ─────────────────────────────────────────────────────────────────


async def list_all(db: AsyncSession, since: date | None = None) -> list[BookedSlots]:
    """All reservations ordered by (date, time), optionally from `since` on."""
    stmt = select(BookedSlots).order_by(BookedSlots.date, BookedSlots.time)
    if since is not None:
        stmt = stmt.where(BookedSlots.date >= since.isoformat())
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load booked slots: {e}")
        raise StorageUnavailable("Failed to load booked slots") from e
    return list(result.scalars().all())


async def list_for_date(db: AsyncSession, date_str: str) -> list[BookedSlots]:
    stmt = (
        select(BookedSlots)
        .where(BookedSlots.date == date_str)
        .order_by(BookedSlots.time)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load booked slots for {date_str}: {e}")
        raise StorageUnavailable("Failed to load booked slots") from e
    return list(result.scalars().all())


async def booked_times(db: AsyncSession, date_str: str) -> set[str]:
    return {row.time for row in await list_for_date(db, date_str)}


# ── Write ────────────────────────────────────────────────────────────────


async def insert(db: AsyncSession, reservation: BookedSlots) -> BookedSlots:
    rows = await insert_many(db, [reservation])
    return rows[0]


async def insert_many(db: AsyncSession, reservations: list[BookedSlots]) -> list[BookedSlots]:
    """
    Insert all reservations in one transaction.

    Raises:
        SlotConflict: a (date, time) already exists (unique constraint).
            The slot is named when it can be identified.
        StorageUnavailable: any other storage failure.
    """
    if not reservations:
        return []

    db.add_all(reservations)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        slot = await _first_taken(db, reservations)
        logger.warning(f"Unique violation while booking {reservations[0].date}: {slot}")
        raise SlotConflict(slot or reservations[0].time) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to save booked slots: {e}")
        raise StorageUnavailable("Failed to save booking") from e

    return reservations


async def _first_taken(db: AsyncSession, reservations: list[BookedSlots]) -> str | None:
    try:
        taken = {row.time for row in await list_for_date(db, reservations[0].date)}
    except StorageUnavailable:
        return None
    for row in sorted(reservations, key=lambda r: r.time):
        if row.time in taken:
            return row.time
    return None


# ── Delete ───────────────────────────────────────────────────────────────


async def delete(db: AsyncSession, date_str: str, time_str: str) -> None:
    """
    Delete one reservation.

    Raises:
        NotFound: no reservation for (date, time).
        StorageUnavailable: storage failure.
    """
    stmt = sa_delete(BookedSlots).where(
        BookedSlots.date == date_str,
        BookedSlots.time == time_str,
    )
    try:
        result = await db.execute(stmt)
        if result.rowcount == 0:
            await db.rollback()
            raise NotFound("Reservation not found")
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to delete booked slot {date_str} {time_str}: {e}")
        raise StorageUnavailable("Failed to delete reservation") from e
