from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import settings
from .models.tables import Base

engine = create_async_engine(settings.resolved_database_url, future=True)


# SQLite: wait for the writer lock instead of failing immediately
@event.listens_for(engine.sync_engine, "connect")
def _sqlite_busy_timeout(dbapi_connection, _):
    if engine.dialect.name != "sqlite":
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


# SessionLocal: main way to talk to the DB
SessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency for FastAPI
async def get_db():
    async with SessionLocal() as db:
        yield db
