from __future__ import annotations

import asyncio
from datetime import date, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from salon_booking.models.tables import BookedSlots
from salon_booking.services import ledger, working_days
from salon_booking.services.booking import BookingService
from salon_booking.services.errors import (
    NotFound,
    PartialBookingError,
    SlotConflict,
    StorageUnavailable,
    ValidationError,
)


def _service(db, locks, **kwargs) -> BookingService:
    return BookingService(db=db, locks=locks, **kwargs)


async def test_booking_creates_one_row_per_slot(db, locks, tomorrow) -> None:
    rows = await _service(db, locks).book(
        tomorrow, "10:00", name="Anna", phone="+79990000000", service="Manicure", duration_minutes=60
    )

    assert [r.time for r in rows] == ["10:00", "10:30"]
    stored = await ledger.list_for_date(db, tomorrow)
    assert [r.time for r in stored] == ["10:00", "10:30"]
    assert {r.name for r in stored} == {"Anna"}
    # one appointment, one creation timestamp
    assert len({r.appointment_id for r in stored}) == 1
    assert len({r.booked_at for r in stored}) == 1
    assert len(locks) == 0


async def test_default_duration_is_one_slot(db, locks, tomorrow) -> None:
    rows = await _service(db, locks).book(tomorrow, "12:30")
    assert [r.time for r in rows] == ["12:30"]


async def test_overlapping_booking_conflicts(db, locks, tomorrow) -> None:
    service = _service(db, locks)
    await service.book(tomorrow, "10:00", duration_minutes=60)

    with pytest.raises(SlotConflict) as exc_info:
        await service.book(tomorrow, "10:30", duration_minutes=30)

    assert exc_info.value.slot == "10:30"
    assert "10:30" in exc_info.value.message
    assert len(locks) == 0


async def test_concurrent_overlapping_requests_only_one_wins(session_factory, locks, tomorrow) -> None:
    async def attempt(time_str: str, duration: int):
        async with session_factory() as session:
            return await _service(session, locks).book(tomorrow, time_str, duration_minutes=duration)

    results = await asyncio.gather(
        attempt("10:00", 60),
        attempt("10:30", 30),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, SlotConflict)]
    assert len(successes) == 1
    assert len(conflicts) == 1

    async with session_factory() as session:
        stored = await ledger.list_for_date(session, tomorrow)
    times = [r.time for r in stored]
    assert len(times) == len(set(times))
    assert len(locks) == 0


async def test_many_concurrent_attempts_on_same_slot(session_factory, locks, tomorrow) -> None:
    async def attempt():
        async with session_factory() as session:
            return await _service(session, locks).book(tomorrow, "15:00")

    results = await asyncio.gather(*(attempt() for _ in range(5)), return_exceptions=True)

    assert sum(not isinstance(r, Exception) for r in results) == 1
    assert all(isinstance(r, SlotConflict) for r in results if isinstance(r, Exception))


async def test_locked_slot_is_reported_busy(db, locks, tomorrow) -> None:
    locks.try_lock(tomorrow, "11:00", "another-request")

    with pytest.raises(SlotConflict) as exc_info:
        await _service(db, locks).book(tomorrow, "10:30", duration_minutes=60)

    assert exc_info.value.slot == "11:00"
    assert not locks.is_locked(tomorrow, "10:30")
    assert await ledger.list_for_date(db, tomorrow) == []


async def test_no_partial_booking_when_one_slot_taken(db, locks, tomorrow) -> None:
    service = _service(db, locks)
    await service.book(tomorrow, "11:00", name="First")

    with pytest.raises(SlotConflict) as exc_info:
        await service.book(tomorrow, "10:00", name="Second", duration_minutes=90)

    assert exc_info.value.slot == "11:00"
    stored = await ledger.list_for_date(db, tomorrow)
    assert [(r.time, r.name) for r in stored] == [("11:00", "First")]


async def test_service_that_does_not_fit_is_rejected(db, locks, tomorrow) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await _service(db, locks).book(tomorrow, "20:30", duration_minutes=90)

    assert "won't fit" in exc_info.value.message
    assert await ledger.list_for_date(db, tomorrow) == []


async def test_last_slot_of_the_day_fits(db, locks, tomorrow) -> None:
    rows = await _service(db, locks).book(tomorrow, "20:30", duration_minutes=30)
    assert [r.time for r in rows] == ["20:30"]


@pytest.mark.parametrize(
    "date_str, time_str, kwargs",
    [
        ("2025/01/10", "10:00", {}),
        ("2025-02-30", "10:00", {}),
        ("TOMORROW", "10:0", {}),
        ("TOMORROW", "24:00", {}),
        ("TOMORROW", "10:60", {}),
        ("TOMORROW", "10:15", {}),
        ("TOMORROW", "08:30", {}),
        ("TOMORROW", "10:00", {"name": "x" * 101}),
        ("TOMORROW", "10:00", {"phone": "1" * 21}),
        ("TOMORROW", "10:00", {"service": "s" * 201}),
        ("TOMORROW", "10:00", {"duration_minutes": -30}),
        ("", "10:00", {}),
    ],
)
async def test_validation_happens_before_locks_and_storage(
    db, locks, tomorrow, date_str, time_str, kwargs
) -> None:
    date_str = tomorrow if date_str == "TOMORROW" else date_str
    service = _service(db, locks)

    with patch.object(ledger, "booked_times", new=AsyncMock()) as booked_times:
        with pytest.raises(ValidationError):
            await service.book(date_str, time_str, **kwargs)

    booked_times.assert_not_called()
    assert len(locks) == 0


async def test_field_length_limits_are_inclusive(db, locks, tomorrow) -> None:
    rows = await _service(db, locks).book(
        tomorrow, "10:00", name="x" * 100, phone="1" * 20, service="s" * 200
    )
    assert len(rows) == 1


async def test_past_date_is_rejected(db, locks) -> None:
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    with pytest.raises(ValidationError):
        await _service(db, locks).book(yesterday, "10:00")


async def test_today_is_allowed(db, locks) -> None:
    today = date(2025, 3, 1)
    rows = await _service(db, locks, today=lambda: today).book("2025-03-01", "10:00")
    assert len(rows) == 1


async def test_storage_uniqueness_is_the_backstop(db, locks, tomorrow) -> None:
    db.add(BookedSlots(date=tomorrow, time="10:30", booked_at="2025-01-01T00:00:00+00:00"))
    await db.commit()

    # stale pre-check: the ledger read misses the existing row
    with patch.object(ledger, "booked_times", new=AsyncMock(return_value=set())):
        with pytest.raises(SlotConflict) as exc_info:
            await _service(db, locks).book(tomorrow, "10:00", duration_minutes=60)

    assert exc_info.value.slot == "10:30"
    assert [r.time for r in await ledger.list_for_date(db, tomorrow)] == ["10:30"]
    assert len(locks) == 0


async def test_storage_failure_releases_locks(db, locks, tomorrow) -> None:
    failing = AsyncMock(side_effect=StorageUnavailable("Failed to save booking"))
    with patch.object(ledger, "insert_many", new=failing):
        with pytest.raises(StorageUnavailable):
            await _service(db, locks).book(tomorrow, "10:00", duration_minutes=60)

    assert len(locks) == 0
    assert await ledger.list_for_date(db, tomorrow) == []


async def test_partial_write_is_reported_distinctly(db, locks, tomorrow) -> None:
    real_insert_many = ledger.insert_many

    async def insert_first_then_fail(session, rows):
        await real_insert_many(session, rows[:1])
        raise StorageUnavailable("connection lost")

    with patch.object(ledger, "insert_many", new=insert_first_then_fail):
        with pytest.raises(PartialBookingError) as exc_info:
            await _service(db, locks).book(tomorrow, "10:00", duration_minutes=60)

    assert exc_info.value.status_code == 500
    assert exc_info.value.code == "partial_write"
    assert exc_info.value.written == ["10:00"]
    assert exc_info.value.missing == ["10:30"]
    assert len(locks) == 0


async def test_close_slot_defaults_to_admin_name(db, locks, tomorrow) -> None:
    rows = await _service(db, locks).close_slot(tomorrow, "18:00", duration_minutes=60)

    assert [r.time for r in rows] == ["18:00", "18:30"]
    assert {r.name for r in rows} == {"Admin"}


async def test_release_slot(db, locks, tomorrow) -> None:
    service = _service(db, locks)
    await service.book(tomorrow, "10:00", duration_minutes=60)

    await service.release_slot(tomorrow, "10:00")

    assert [r.time for r in await ledger.list_for_date(db, tomorrow)] == ["10:30"]
    with pytest.raises(NotFound):
        await service.release_slot(tomorrow, "10:00")


async def test_enforced_working_days(db, locks) -> None:
    today = date(2025, 1, 1)
    service = _service(db, locks, enforce_working_days=True, today=lambda: today)

    with pytest.raises(ValidationError):
        await service.book("2025-01-05", "10:00")

    await working_days.set_override(db, "2025-01-05", "working")
    rows = await service.book("2025-01-05", "10:00")
    assert len(rows) == 1


async def test_successful_booking_invalidates_cache_and_emits_event(db, locks, tomorrow) -> None:
    cache = AsyncMock()
    redis = AsyncMock()

    await _service(db, locks, cache=cache, redis=redis).book(tomorrow, "10:00", name="Anna")

    cache.invalidate.assert_awaited_once_with(tomorrow)
    redis.rpush.assert_awaited_once()
    queue, payload = redis.rpush.await_args.args
    assert queue == "events:p2p"
    assert '"booking_created"' in payload
