"""
Database module for NanoBanana.

Provides async SQLAlchemy database connection management and session handling.
"""

import logging
import time
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from core.config import get_settings
from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> str | None:
    """Get the database URL from settings."""
    settings = get_settings()
    return settings.database_url


async def init_database(database_url: str | None = None) -> None:
    """
    Initialize the database engine and session factory.

    Should be called during application startup.
    """
    global _engine, _async_session_factory

    settings = get_settings()

    database_url = database_url or get_database_url()
    if not database_url:
        logger.warning("DATABASE_URL not configured, database features disabled")
        return

    logger.info("Initializing database connection...")

    if database_url.startswith("sqlite"):
        # SQLite connections are cheap and must not be shared across event loops
        _engine = create_async_engine(
            database_url,
            poolclass=NullPool,
            echo=settings.debug and settings.db_echo,
        )
    else:
        _engine = create_async_engine(
            database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            echo=settings.debug and settings.db_echo,
        )

    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("Database initialized successfully")


async def create_all_tables() -> None:
    """Create all tables from model metadata (development and tests)."""
    from database.models import Base

    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_database() -> None:
    """
    Close the database connection.

    Should be called during application shutdown.
    """
    global _engine, _async_session_factory

    if _engine is not None:
        logger.info("Closing database connection...")
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection closed")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get an async database session.

    Commits when the request finishes and rolls back if it raised.
    Use as a dependency in FastAPI:
        @app.get("/items")
        async def get_items(session: AsyncSession = Depends(get_session)):
            ...
    """
    if _async_session_factory is None:
        raise ExternalServiceError(
            message="Database is not available",
            error_code="database_unavailable",
        )

    async with _async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory for work outside a request."""
    if _async_session_factory is None:
        raise RuntimeError(
            "Database not initialized. Call init_database() first or check DATABASE_URL."
        )
    return _async_session_factory


def is_database_available() -> bool:
    """Check if database is available and initialized."""
    return _engine is not None and _async_session_factory is not None


class DatabaseHealthCheck:
    """Database probe used by the health and status endpoints."""

    @staticmethod
    async def check() -> dict:
        """
        Run a trivial query.

        Returns:
            Dictionary with status and response time in milliseconds
        """
        if not is_database_available():
            return {
                "status": "not_initialized",
                "response_time_ms": None,
            }

        try:
            start = time.perf_counter()
            async with _async_session_factory() as session:
                await session.execute(text("SELECT 1"))
            response_time_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "response_time_ms": round(response_time_ms, 2),
            }
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": None,
            }


# Export commonly used items
__all__ = [
    "init_database",
    "create_all_tables",
    "close_database",
    "get_session",
    "get_session_factory",
    "is_database_available",
    "DatabaseHealthCheck",
]
