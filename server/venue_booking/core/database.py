"""Async engine, session factory and the declarative base for all tables."""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from .config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """
    Connection pool settings for a database URL.

    In-memory SQLite needs a single shared connection or every session would
    see an empty database. PostgreSQL gets a sized, pre-pinged pool.
    """
    if database_url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("aiosqlite:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **engine_options(settings.database_url),
)

# Objects stay readable after commit; the booking service refreshes explicitly
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by hotels, venues, customers, bookings and audit entries."""


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields one session per request.

    Anything left uncommitted when the request fails is rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# Alias for FastAPI dependency injection
get_db = get_async_session


async def init_db() -> None:
    """Create all tables; used outside production where Alembic owns the schema."""
    from .. import models  # noqa: F401 - registers every table on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
