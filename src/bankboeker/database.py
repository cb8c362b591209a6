"""Database configuration and session management.

Engines and session factories are constructed explicitly and handed to the
services that need them; nothing here opens a connection at import time.
"""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from bankboeker.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


def create_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite)."""
    options: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url:
            # One shared connection keeps the in-memory schema alive
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_pre_ping=True,
            pool_size=10,  # Max persistent connections
            max_overflow=20,  # Additional transient connections under load
            pool_recycle=3600,  # Recycle connections after 1 hour
        )
    return create_async_engine(database_url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables known to the declarative base."""
    # Import models so every table is registered on Base.metadata
    import bankboeker.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized", tables=len(Base.metadata.tables))


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database session."""
    maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with maker() as session:
        try:
            yield session
        finally:
            await session.close()
