"""Shared pytest fixtures for test suite."""

import os
from collections.abc import AsyncGenerator

# Set test environment variables BEFORE any repokit imports so the global
# settings instance and the tracing decorators see them.
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["OTEL_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from repokit.core.config import Settings
from repokit.core.database import create_engine, create_session_maker
from repokit.models.base import Base
from repokit.repositories import BaseRepository

from tests.models import Author, Book, Review, Tag


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings configured for testing with an in-memory database."""
    return Settings(
        environment="testing",
        log_level="WARNING",
        database_url="sqlite+aiosqlite:///:memory:",
    )


# ===== Database Fixtures =====


@pytest_asyncio.fixture
async def test_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with all test tables.

    Function scoped: every test gets its own database, so the engine never
    outlives the event loop it was created on.
    """
    engine = create_engine(test_settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session wrapped in a transaction that is rolled back after the test."""
    session_maker = create_session_maker(test_engine)

    async with session_maker() as session:
        transaction = await session.begin()
        try:
            yield session
        finally:
            await transaction.rollback()


# ===== Repository Fixtures =====


@pytest.fixture
def author_repo(db_session: AsyncSession) -> BaseRepository[Author]:
    return BaseRepository(db_session, Author)


@pytest.fixture
def book_repo(db_session: AsyncSession) -> BaseRepository[Book]:
    return BaseRepository(db_session, Book)


@pytest.fixture
def review_repo(db_session: AsyncSession) -> BaseRepository[Review]:
    return BaseRepository(db_session, Review)


@pytest.fixture
def tag_repo(db_session: AsyncSession) -> BaseRepository[Tag]:
    return BaseRepository(db_session, Tag)
