"""
app/db/database.py

Purpose: Relational database setup

- Declarative base shared by all models
- Async engine and session factory lifecycle
- Schema creation on startup
- Health checks and per-request sessions
"""

from typing import AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def build_engine(database_url: str, echo: bool = False, **engine_kwargs) -> AsyncEngine:
    """
    Creates an async engine. SQLite connections get foreign keys switched on
    so submission rows cascade with their user.
    """
    engine = create_async_engine(database_url, echo=echo, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine):
    """Creates every table and index declared on Base."""
    # Models register themselves on Base.metadata at import time
    from app.models import user, form_submission, form_schema  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def connect_to_database():
    """
    Creates the engine, verifies connectivity and ensures the schema exists.
    Called during application startup.
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Database engine already initialized")
        return

    logger.info(f"Connecting to database ({settings.DATABASE_URL.split('://')[0]})")

    _engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    _session_factory = build_session_factory(_engine)

    try:
        await create_tables(_engine)
    except SQLAlchemyError as e:
        logger.critical(f"Failed to initialize database schema: {e}")
        await _engine.dispose()
        _engine = None
        _session_factory = None
        raise ConnectionError("Could not initialize the database") from e

    logger.info("✅ Database connected and schema ready")


async def close_database_connection():
    """
    Disposes the engine pool.
    Called during application shutdown.
    """
    global _engine, _session_factory

    if _engine:
        logger.info("Closing database connection")
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    if _engine is None:
        logger.error("Database engine not initialized")
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Returns the session factory.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _session_factory is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_database() during startup."
        )
    return _session_factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""
    async with get_session_factory()() as session:
        yield session
