"""Database Session Manager — one async engine per process, sessions that never half-commit.

Invariants:
    - A session that raises is rolled back before the exception leaves it, so a
      customization row is never committed without its promoted temp files
    - SQLAlchemy failures surface as DatabaseError (503), everything else re-raised untouched
    - Rules and constraints are read fresh per request: nothing cached across sessions
    - get_db refuses to hand out sessions before init_db ran

Design Decisions:
    - Failure mapping is a table (_FAILURES), most specific class first
    - expire_on_commit=False: response schemas read attributes after commit
    - Pool sizing and recycling only for server databases; SQLite ignores them
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from app.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# (exception class, operation, client-facing message)
_FAILURES: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "commit", "Integrity constraint violated"),
    (OperationalError, "execute", "Connection or operational error"),
    (DBAPIError, "query", "Database driver error"),
    (SQLAlchemyError, "unknown", "Database operation failed"),
)


def _as_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, operation, message in _FAILURES:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


def build_engine(
    database_url: str, pool_size: int = 20, max_overflow: int = 10,
) -> AsyncEngine:
    options: dict = {"pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options |= {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_recycle": 3600,
        }
    return create_async_engine(database_url, **options)


class DatabaseSessionManager:
    """Owns the engine and session factory; hands out rollback-safe sessions."""

    def __init__(self, database_url: str, **pool_options):
        self.engine = build_engine(database_url, **pool_options)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                error = _as_database_error(e)
                logger.error(
                    f"{type(e).__name__} during {error.operation}: {e}",
                    extra={"error_code": error.code},
                )
                raise error from e
            except BaseException:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """True when a trivial query round-trips (readiness probe)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database not ready: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


# ─── Process-wide manager (set by the app lifespan) ─────────────

db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **pool_options) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **pool_options)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.dispose()
    db_manager = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
