"""
Database Base Configuration

Sets up the async SQLAlchemy engine and session management.

The engine and session factory are built once by the application factory
(lms.main.create_app) and stored on ``app.state``; request handlers obtain
sessions through the ``get_db`` dependency rather than a module global.

Usage:
    from lms.db.base import create_engine, create_session_maker

    engine = create_engine()
    session_maker = create_session_maker(engine)

    async with session_maker() as session:
        result = await session.execute(...)
"""

from collections.abc import AsyncGenerator
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lms.config import settings, yaml_config


# Get pool configuration from yaml config
db_config: dict[str, Any] = yaml_config.get("database", {})
pool_size: int = db_config.get("pool_size", 5)
max_overflow: int = db_config.get("max_overflow", 10)
pool_timeout: int = db_config.get("pool_timeout", 30)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine.

    Pool sizing from config/default.yaml only applies to server databases;
    SQLite engines use SQLAlchemy's default pool for the driver.
    """
    url = url or settings.DB_URL
    kwargs: dict[str, Any] = {"echo": settings.DEBUG}
    if url.startswith("postgresql"):
        kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
        )
    return create_async_engine(url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# Import models AFTER Base is defined to avoid circular imports.
# This ensures all models are registered with Base.metadata.
from lms.db import models, models_review  # noqa: F401, E402


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions in FastAPI routes.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database tables.

    Called on application startup to create tables that don't exist.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
