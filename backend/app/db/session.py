"""Async Session Factory — provides async DB sessions outside FastAPI.

Invariants:
    - Meant for scripts (app.jobs) and one-off maintenance, never request handlers
    - Caller owns the engine lifetime: dispose it when the script ends

Design Decisions:
    - Separate from infrastructure/database.py: no pool sizing, no error mapping,
      jobs want plain SQLAlchemy exceptions in their logs
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)


def create_session_factory(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine plus async session factory for the given database URL."""
    engine = create_async_engine(database_url, echo=False)
    return engine, async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
