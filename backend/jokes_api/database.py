"""
Jokes API Backend — Database Handle and Session Management
============================================================

What:  Async SQLAlchemy engine + session factory wrapped in an explicit `Database`
       handle, and the FastAPI dependency that hands out one session per request.
Why:   The store is constructed by create_app() and passed in through app.state,
       so tests (or a second app instance) can point at a different database
       without touching process-wide globals.
How:   `Database` owns the engine and session factory; `get_db_session` reads the
       handle from the running app and yields a session that commits on success
       and rolls back on error.
Who:   Built in jokes_api.main.create_app(); consumed by route handlers via Depends().

Connection Pooling Strategy (PostgreSQL / asyncpg):
    pool_size=20:      Persistent connections
    pool_timeout=2s:   Waiting for a free connection fails fast; the failure surfaces
                       as backend_unavailable with no retry
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle:      Recycles long-lived connections

SQLite (tests, local runs):
    Foreign keys are off by default in SQLite. Every new connection runs
    PRAGMA foreign_keys=ON so reference violations surface exactly as on PostgreSQL.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from jokes_api.config import Settings
from jokes_api.services.error_translation import translate_store_errors

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, Alembic autogenerate,
    and the test suite's create_all().
    """
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Explicitly constructed store handle.

    Attributes:
        url:             The async SQLAlchemy URL the engine was built from
        engine:          AsyncEngine owning the connection pool
        session_factory: async_sessionmaker producing AsyncSession instances

    Usage:
        db = Database.from_settings(settings)
        async with db.session() as session:
            await session.execute(...)
        await db.dispose()
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: ORM objects stay readable after the request commits
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """
        Build a handle from application settings.

        Pool options are only passed for server databases; SQLite picks its own pool.
        """
        url = settings.sqlalchemy_url
        kwargs = {}
        if make_url(url).get_backend_name() != "sqlite":
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=settings.db_pool_recycle,
            )
        return cls(url, echo=settings.log_level == "DEBUG", **kwargs)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def ping(self) -> bool:
        """
        Store-connectivity probe used by GET /health.

        Returns False (and logs) instead of raising: the health route reports
        the outcome, it never propagates the failure.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close every pooled connection (application shutdown)."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the handle attached to the running app."""
    db: Optional[Database] = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database handle is not attached to the application")
    return db


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's Database handle
        2. Yields it to the route handler
        3. On success: commits the transaction (a failing commit is translated
           like any other store failure)
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)
    """
    db = get_database(request)
    async with db.session() as session:
        try:
            yield session
            with translate_store_errors("commit transaction"):
                await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
