"""Temp File Cleanup Job — TTL sweep for the temp store, run by an external scheduler.

Usage:
    python -m app.jobs.cleanup_temp_files --hours 48

Invariants:
    - Promoted files (referenced by a saved order customization) are never deleted
    - Safe to run while the API materializes: only files older than the threshold go

Design Decisions:
    - Standalone process with its own engine (db/session.py): a cron container
      does not need the web app's pool
"""

import argparse
import asyncio
import logging

from app.config import get_settings
from app.db.session import create_session_factory
from app.infrastructure.observability import setup_logging
from app.infrastructure.temp_file_store import TempFileStore
from app.services.temp_files import TempFileService

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--hours", type=float, default=settings.temp_file_ttl_hours,
        help="delete unpromoted files older than this many hours",
    )
    return parser.parse_args(argv)


async def run_cleanup(hours: float) -> dict:
    settings = get_settings()
    store = TempFileStore(
        settings.temp_uploads_dir, url_prefix=settings.temp_files_url_prefix,
    )
    engine, session_factory = create_session_factory(settings.database_url)
    try:
        async with session_factory() as db:
            result = await TempFileService(
                db, store, ttl_hours=settings.temp_file_ttl_hours,
            ).cleanup_expired(hours)
            await db.commit()
    finally:
        await engine.dispose()
    return result


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    result = asyncio.run(run_cleanup(args.hours))
    logger.info(
        f"Cleanup finished: {result['deleted']} deleted, {result['failed']} failed",
    )
    return 1 if result["failed"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
