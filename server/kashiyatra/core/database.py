"""Database configuration and async session management."""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings


def _engine_options(database_url: str) -> dict:
    """Pool and driver options for the configured backend."""
    if "sqlite" not in database_url:
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False, "timeout": 30}}
    # In-memory SQLite only lives as long as its single connection
    if ":memory:" in database_url:
        options["poolclass"] = StaticPool
    return options


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    **_engine_options(settings.database_url),
)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Alias for FastAPI dependency injection
get_db = get_async_session


async def create_schema(bind: AsyncEngine) -> None:
    """Create all tables and seed the counters booking identifiers are drawn from."""
    from ..models import Sequence  # noqa: F401 - registers all models on Base
    from ..services.sequence_service import BOOKING_SEQUENCE, SequenceService

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        await SequenceService(session).ensure(BOOKING_SEQUENCE)
        await session.commit()


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    await create_schema(engine)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
