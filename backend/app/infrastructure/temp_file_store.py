"""Temp File Store — filesystem-backed short-lived blob store with TTL sweep.

Invariants:
    - Every file lives directly under base_dir (flat namespace, no subdirectories)
    - Filenames are "<epoch-ms>-<sanitized original name>", created exclusively:
      a collision gets a numeric suffix, an existing file is never overwritten
    - Names containing "..", "/" or "\\" are rejected before any filesystem call
    - cleanup_old_files only touches files older than the threshold, so it is safe
      to run while materializations are writing new files
    - Fatal write failures (disk full, read-only fs, quota) raise StorageError(fatal=True)

Design Decisions:
    - Blocking file IO pushed to a worker thread (asyncio.to_thread) for writes, the
      only operation on the request hot path
    - The store knows nothing about orders: callers pass `keep` to protect promoted files
    - URLs are relative ("<prefix>/<filename>") so they survive host/port changes
"""

import asyncio
import errno
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from app.core.errors import InvalidFilenameError, StorageError

logger = logging.getLogger(__name__)

FATAL_ERRNOS = frozenset({
    errno.ENOSPC, errno.EROFS, getattr(errno, "EDQUOT", errno.ENOSPC),
})
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_MAX_NAME_LENGTH = 120


@dataclass(frozen=True)
class SavedFile:
    filename: str
    url: str
    path: Path
    size: int


@dataclass(frozen=True)
class TempFileInfo:
    filename: str
    size: int
    created_at: datetime

    def to_dict(self) -> dict:
        age_minutes = (datetime.now(timezone.utc) - self.created_at).total_seconds() / 60
        return {
            "filename": self.filename,
            "size": self.size,
            "createdAt": self.created_at.isoformat(),
            "ageMinutes": round(age_minutes),
        }


def sanitize_name(original_name: str) -> str:
    """Lowercase, every char outside [a-zA-Z0-9._-] replaced by '_'."""
    sanitized = _UNSAFE_CHARS.sub("_", original_name or "").lower().strip("._")
    return (sanitized or "file")[-_MAX_NAME_LENGTH:]


def check_filename(filename: str) -> str:
    """Path-traversal guard. Returns the name unchanged or raises InvalidFilenameError."""
    if (
        not filename
        or ".." in filename
        or "/" in filename
        or "\\" in filename
    ):
        logger.warning(
            "Rejected unsafe temp file name", extra={"temp_file": filename},
        )
        raise InvalidFilenameError(filename)
    return filename


class TempFileStore:
    """Short-lived blob store rooted at one directory."""

    def __init__(
        self,
        base_dir: str | Path,
        url_prefix: str = "/temp",
        max_bytes: int | None = None,
    ):
        self.base_dir = Path(base_dir).resolve()
        self.url_prefix = "/" + url_prefix.strip("/")
        self.max_bytes = max_bytes
        self.base_dir.mkdir(parents=True, exist_ok=True)

    # ─── Write ───────────────────────────────────────────────────

    async def save_file(self, content: bytes, original_name: str) -> SavedFile:
        """Write bytes under a collision-resistant name and return its URL."""
        if self.max_bytes is not None and len(content) > self.max_bytes:
            raise StorageError(
                f"{len(content)} bytes exceeds limit of {self.max_bytes}",
                "write", fatal=False,
            )
        stem = f"{int(time.time() * 1000)}-{sanitize_name(original_name)}"
        path = await asyncio.to_thread(self._write_exclusive, stem, content)
        saved = SavedFile(
            filename=path.name,
            url=self.url_for(path.name),
            path=path,
            size=len(content),
        )
        logger.info(
            f"Temp file saved ({saved.size} bytes)",
            extra={"temp_file": saved.filename},
        )
        return saved

    def _write_exclusive(self, stem: str, content: bytes) -> Path:
        base, dot, ext = stem.rpartition(".")
        if not base:
            base, dot, ext = stem, "", ""
        attempt = 0
        while True:
            name = stem if attempt == 0 else f"{base}-{attempt}{dot}{ext}"
            path = self.base_dir / name
            try:
                with open(path, "xb") as fh:
                    fh.write(content)
                return path
            except FileExistsError:
                attempt += 1
            except OSError as e:
                raise StorageError(
                    e.strerror or str(e), "write", fatal=e.errno in FATAL_ERRNOS,
                )

    # ─── Read ────────────────────────────────────────────────────

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def filename_from_url(self, url: str) -> str | None:
        """Inverse of url_for; tolerates absolute URLs. None for foreign URLs."""
        marker = f"{self.url_prefix}/"
        if not isinstance(url, str) or marker not in url:
            return None
        name = url.split(marker, 1)[1].split("?", 1)[0]
        try:
            return check_filename(name)
        except InvalidFilenameError:
            return None

    def get_file_path(self, filename: str) -> Path:
        return self.base_dir / check_filename(filename)

    def file_exists(self, filename: str) -> bool:
        return self.get_file_path(filename).is_file()

    def get_file_info(self, filename: str) -> TempFileInfo | None:
        path = self.get_file_path(filename)
        try:
            stats = path.stat()
        except FileNotFoundError:
            return None
        return TempFileInfo(
            filename=filename,
            size=stats.st_size,
            created_at=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
        )

    def list_files(self) -> list[TempFileInfo]:
        """All files in the store, oldest first (monitoring/ops)."""
        infos = []
        for path in self.base_dir.iterdir():
            if not path.is_file():
                continue
            stats = path.stat()
            infos.append(TempFileInfo(
                filename=path.name,
                size=stats.st_size,
                created_at=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            ))
        return sorted(infos, key=lambda i: (i.created_at, i.filename))

    # ─── Delete ──────────────────────────────────────────────────

    def delete_file(self, filename: str) -> bool:
        """Unlink one file. False if absent; InvalidFilenameError if unsafe."""
        path = self.get_file_path(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Temp file not found", extra={"temp_file": filename})
            return False
        logger.debug("Temp file deleted", extra={"temp_file": filename})
        return True

    def delete_files(self, filenames: Iterable[str]) -> dict:
        deleted = failed = 0
        for filename in filenames:
            try:
                ok = self.delete_file(filename)
            except (InvalidFilenameError, OSError) as e:
                logger.error(f"Failed to delete temp file {filename!r}: {e}")
                ok = False
            if ok:
                deleted += 1
            else:
                failed += 1
        logger.info(
            "Temp files deleted", extra={"deleted": deleted, "failed": failed},
        )
        return {"deleted": deleted, "failed": failed}

    def cleanup_old_files(
        self, hours: float, keep: Iterable[str] = (),
    ) -> dict:
        """Delete every file older than `hours`, except names in `keep`."""
        protected = set(keep)
        threshold = time.time() - hours * 3600
        deleted = failed = 0
        for path in self.base_dir.iterdir():
            if path.name in protected:
                continue
            try:
                if not path.is_file() or path.stat().st_mtime >= threshold:
                    continue
                path.unlink()
                deleted += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Failed to sweep temp file {path.name!r}: {e}")
                failed += 1
        if deleted or failed:
            logger.info(
                f"Temp file sweep older than {hours}h",
                extra={"deleted": deleted, "failed": failed},
            )
        return {"deleted": deleted, "failed": failed}
