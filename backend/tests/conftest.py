from __future__ import annotations

import asyncio
import os
import tempfile
from datetime import date, timedelta

# Settings are read at import time: point them at throwaway storage first.
# Tests must never touch a real database or Redis.
_TMP_DIR = tempfile.mkdtemp(prefix="salon-booking-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/app.db"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["API_PREFIX"] = ""
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from salon_booking.database import get_db  # noqa: E402
from salon_booking.main import app  # noqa: E402
from salon_booking.models.tables import Base  # noqa: E402
from salon_booking.services.slots.locks import SlotLockRegistry, get_slot_locks  # noqa: E402


def _session_factory(url: str) -> async_sessionmaker:
    engine = create_async_engine(url, poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


async def _create_tables(url: str) -> None:
    engine = create_async_engine(url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
async def session_factory(database_url):
    await _create_tables(database_url)
    factory = _session_factory(database_url)
    yield factory
    await factory.kw["bind"].dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def locks() -> SlotLockRegistry:
    return SlotLockRegistry(ttl_seconds=30)


@pytest.fixture
def tomorrow() -> str:
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def client(database_url, locks):
    asyncio.run(_create_tables(database_url))
    factory = _session_factory(database_url)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_slot_locks] = lambda: locks
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
