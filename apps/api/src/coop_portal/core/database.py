"""
Database Configuration

Async SQLAlchemy engine, session factory and declarative base.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from coop_portal.core.config import settings


def _get_engine_kwargs() -> dict:
    """Return dialect-specific engine options for SQLite vs PostgreSQL."""
    kwargs: dict = {"echo": settings.database_echo}
    if settings.is_sqlite:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


engine = create_async_engine(settings.database_url, **_get_engine_kwargs())

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields a database session.

    Services commit explicitly. Anything left uncommitted when the request
    fails is rolled back here.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the database is reachable. Schema is managed by Alembic."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Dispose the engine connection pool."""
    await engine.dispose()
