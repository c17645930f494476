"""Async engine and session factory helpers.

The repository never creates sessions itself; these helpers exist so that
applications (and the test suite) can build the session they inject.
"""

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from repokit.core.config import Settings, settings as default_settings
from repokit.core.logging import get_logger

logger = get_logger(__name__)


class DBErrorMessage:
    """Standardized database error messages."""
    CREATE_ENGINE_NO_URL = "DATABASE_URL is not configured"
    CREATE_ENGINE_MIN_DB_POOL_SIZE = "DATABASE_POOL_SIZE must be at least 1"
    CREATE_ENGINE_NEGATIVE_MAX_OVERFLOW = "DATABASE_MAX_OVERFLOW must be non-negative"
    CREATE_ENGINE_FAILED = "Failed to create database engine"


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def create_engine(config: Settings | None = None) -> AsyncEngine:
    """Create an AsyncEngine from settings.

    Pool sizing is only passed for server databases. In-memory SQLite uses a
    StaticPool so every session sees the same database.

    Raises:
        ValueError: If the database URL is missing or settings are misconfigured
    """
    config = config or default_settings

    if not config.database_url:
        raise ValueError(DBErrorMessage.CREATE_ENGINE_NO_URL)

    try:
        if config.database_url.startswith("sqlite"):
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if _is_memory_sqlite(config.database_url):
                kwargs["poolclass"] = StaticPool
        else:
            if config.database_pool_size < 1:
                raise ValueError(DBErrorMessage.CREATE_ENGINE_MIN_DB_POOL_SIZE)
            if config.database_max_overflow < 0:
                raise ValueError(DBErrorMessage.CREATE_ENGINE_NEGATIVE_MAX_OVERFLOW)
            kwargs = {
                "pool_size": config.database_pool_size,
                "max_overflow": config.database_max_overflow,
                "pool_pre_ping": True,
            }

        logger.info(
            "Creating async database engine",
            backend=config.database_backend,
            **{k: v for k, v in kwargs.items() if k in ("pool_size", "max_overflow")},
        )

        return create_async_engine(config.database_url, echo=config.database_echo, **kwargs)
    except ValueError:
        raise
    except Exception as e:
        logger.error("Failed to create database engine", error=str(e))
        raise ValueError(DBErrorMessage.CREATE_ENGINE_FAILED) from e


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory applications use to obtain repository sessions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def check_database_connection(engine: AsyncEngine) -> bool:
    """Check if database connection is available.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.debug("Database connection check passed")
        return True
    except Exception as e:
        logger.error("Database connection check failed", error=str(e))
        return False
