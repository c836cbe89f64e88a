"""Temp File Service — database tracking, promotion and TTL sweep for temp files.

Invariants:
    - Every file the materializer writes gets one temp_files row (filename unique)
    - promote(file_id, order_id) is idempotent and one-way: the first order wins,
      a later promote to another order is a logged no-op
    - The sweep never deletes a promoted file, on disk or in the table
    - A row is dropped only once its file is gone from disk
    - Replacing a customization never deletes a file promoted to another order
    - Rows are flushed, never committed here: the caller's transaction decides

Design Decisions:
    - One tracking table for every temp file: a URL inside customization_data
      maps back to exactly one row through its filename
    - Files found on disk without a row (written before a crash, or by an
      operator) are registered on promote instead of rejected
"""

import logging
import mimetypes
from datetime import datetime, timedelta, timezone
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidFilenameError, ResourceNotFoundError
from app.core.repository_protocols import FileStore, SavedFileLike
from app.infrastructure.temp_file_store import SavedFile
from app.models.temp_file import TempFile

logger = logging.getLogger(__name__)


def original_name_of(filename: str) -> str:
    """Strip the "<epoch-ms>-" prefix the store adds."""
    prefix, sep, rest = filename.partition("-")
    return rest if sep and prefix.isdigit() and rest else filename


def serialize_temp_file(record: TempFile) -> dict:
    return {
        "id": str(record.id),
        "filename": record.filename,
        "originalName": record.original_name,
        "mimeType": record.mime_type,
        "size": record.file_size,
        "createdAt": record.created_at.isoformat(),
        "expiresAt": record.expires_at.isoformat(),
        "orderId": str(record.order_id) if record.order_id else None,
        "promotedAt": record.promoted_at.isoformat() if record.promoted_at else None,
    }


class TempFileService:
    """Bridges the filesystem store and the temp_files table."""

    def __init__(self, db: AsyncSession, store: FileStore, ttl_hours: float = 48):
        self.db = db
        self.store = store
        self.ttl_hours = ttl_hours

    # ─── Register / lookup ───────────────────────────────────────

    async def register(self, saved: SavedFileLike) -> TempFile:
        existing = await self.get_by_filename(saved.filename)
        if existing:
            return existing
        now = datetime.now(timezone.utc)
        record = TempFile(
            filename=saved.filename,
            original_name=original_name_of(saved.filename),
            mime_type=mimetypes.guess_type(saved.filename)[0],
            file_size=saved.size,
            created_at=now,
            expires_at=now + timedelta(hours=self.ttl_hours),
        )
        self.db.add(record)
        await self.db.flush()
        return record

    async def register_many(self, saved_files: Iterable[SavedFileLike]) -> list[TempFile]:
        return [await self.register(saved) for saved in saved_files]

    async def get_by_filename(self, filename: str) -> TempFile | None:
        result = await self.db.execute(
            select(TempFile).where(TempFile.filename == filename),
        )
        return result.scalar_one_or_none()

    async def resolve(self, file_ref: str) -> tuple[TempFile | None, str]:
        """Accept a record id or a filename. Returns (record, filename) or 404."""
        record = None
        try:
            record = await self.db.get(TempFile, UUID(file_ref))
        except ValueError:
            pass
        if record is None:
            record = await self.get_by_filename(file_ref)
        filename = record.filename if record else file_ref
        try:
            exists = self.store.file_exists(filename)
        except InvalidFilenameError:
            exists = False
        if not exists:
            raise ResourceNotFoundError("TempFile", file_ref)
        return record, filename

    # ─── Promote ─────────────────────────────────────────────────

    async def promote(self, file_id: UUID, order_id: UUID) -> TempFile:
        record = await self.db.get(TempFile, file_id)
        if record is None:
            raise ResourceNotFoundError("TempFile", str(file_id))
        return self._promote_record(record, order_id)

    def _promote_record(self, record: TempFile, order_id: UUID) -> TempFile:
        if record.promoted_at is not None:
            if record.order_id != order_id:
                logger.warning(
                    f"Temp file already promoted to order {record.order_id}",
                    extra={"temp_file": record.filename, "order_id": str(order_id)},
                )
            return record
        record.order_id = order_id
        record.promoted_at = datetime.now(timezone.utc)
        return record

    async def promote_filenames(
        self, filenames: Iterable[str], order_id: UUID,
    ) -> list[TempFile]:
        """Promote every named file, registering ones that exist only on disk."""
        promoted = []
        for filename in dict.fromkeys(filenames):
            record = await self.get_by_filename(filename)
            if record is None:
                if not self.store.file_exists(filename):
                    logger.warning(
                        "Referenced temp file is missing on disk",
                        extra={"temp_file": filename, "order_id": str(order_id)},
                    )
                    continue
                path = self.store.get_file_path(filename)
                record = await self.register(SavedFile(
                    filename=filename, url=self.store.url_for(filename),
                    path=path, size=path.stat().st_size,
                ))
            promoted.append(self._promote_record(record, order_id))
        await self.db.flush()
        return promoted

    def filenames_for_urls(self, urls: Iterable[str]) -> list[str]:
        names = (self.store.filename_from_url(url) for url in urls)
        return [name for name in names if name]

    async def owned_by(self, filenames: Iterable[str], order_id: UUID) -> list[str]:
        """Names this order may delete: unpromoted, untracked, or promoted to it."""
        owned = []
        for filename in dict.fromkeys(filenames):
            record = await self.get_by_filename(filename)
            foreign = (
                record is not None and record.is_promoted
                and record.order_id != order_id
            )
            if foreign:
                logger.info(
                    f"Kept temp file owned by order {record.order_id}",
                    extra={"temp_file": filename, "order_id": str(order_id)},
                )
                continue
            owned.append(filename)
        return owned

    # ─── Delete / sweep ──────────────────────────────────────────

    async def delete_files(self, filenames: Iterable[str]) -> dict:
        """Remove files from disk and their rows, promoted or not."""
        names = list(dict.fromkeys(filenames))
        if not names:
            return {"deleted": 0, "failed": 0}
        result = self.store.delete_files(names)
        await self._forget_removed(names)
        return result

    async def _forget_removed(self, filenames: list[str]) -> None:
        """Drop rows only for files no longer on disk; a failed unlink stays tracked."""
        gone = [name for name in filenames if not self._on_disk(name)]
        if gone:
            await self.db.execute(
                delete(TempFile).where(TempFile.filename.in_(gone)),
            )
        await self.db.flush()

    def _on_disk(self, filename: str) -> bool:
        try:
            return self.store.file_exists(filename)
        except InvalidFilenameError:
            return False

    async def promoted_filenames(self) -> set[str]:
        result = await self.db.execute(
            select(TempFile.filename).where(TempFile.promoted_at.is_not(None)),
        )
        return set(result.scalars().all())

    async def cleanup_expired(self, hours: float | None = None) -> dict:
        """Delete unpromoted files older than `hours` (default: the TTL)."""
        hours = self.ttl_hours if hours is None else hours
        keep = await self.promoted_filenames()
        result = self.store.cleanup_old_files(hours, keep=keep)
        threshold = datetime.now(timezone.utc) - timedelta(hours=hours)
        expired = await self.db.execute(
            select(TempFile.filename)
            .where(TempFile.promoted_at.is_(None))
            .where(TempFile.created_at < threshold),
        )
        await self._forget_removed(list(expired.scalars().all()))
        logger.info(
            f"Temp file cleanup older than {hours}h (kept {len(keep)} promoted)",
            extra={"deleted": result["deleted"], "failed": result["failed"]},
        )
        return result

