"""
Integration Test Fixtures

Provides fixtures for integration tests that run against a real database
engine. By default each test gets a fresh SQLite file (via aiosqlite); set
TEST_DATABASE_URL to run the same tests against PostgreSQL.

The app fixture builds the application around the test engine, so the
configured production database is never touched.
"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lms.db.base import Base, create_engine, create_session_maker
from lms.db.models import Module
from lms.repositories.modules import ModuleRepository

pytestmark = pytest.mark.integration

STUDENT_HEADERS = {"X-Student-Id": "alice", "X-User-Role": "student"}
OTHER_STUDENT_HEADERS = {"X-Student-Id": "bob", "X-User-Role": "student"}


def get_test_db_url(tmp_path: Path) -> str:
    """TEST_DATABASE_URL if set, else a throwaway SQLite file."""
    return os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'review.db'}"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine with all tables created; dropped again afterwards."""
    engine = create_engine(get_test_db_url(tmp_path))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def stored_module(session_maker, sample_module_data) -> Module:
    """The sample module, committed."""
    module = Module(
        id=sample_module_data["id"],
        course_id=sample_module_data["courseId"],
        title=sample_module_data["title"],
        is_interactive=sample_module_data["isInteractive"],
        content_blocks=sample_module_data["contentBlocks"],
        ai_generated_content=sample_module_data["aiGeneratedContent"],
    )
    async with session_maker() as session:
        await ModuleRepository(session).add(module)
        await session.commit()
    return module


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Async HTTP client against an app bound to the test engine.

    The lifespan is not run (tables already exist), and the engine is
    disposed by the engine fixture.
    """
    from lms.main import create_app

    app = create_app(engine=engine, create_tables=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
