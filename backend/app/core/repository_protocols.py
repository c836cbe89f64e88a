"""Boundary Protocols — contracts between core/services and infrastructure.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The materializer only sees FileSink, never the concrete TempFileStore

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass any object with save_file
    - Async in Protocol: implementations do IO, the pure payload helpers stay sync
"""

from pathlib import Path
from typing import Iterable, Protocol


class SavedFileLike(Protocol):
    """What a sink hands back after a successful write."""
    filename: str
    url: str
    size: int


class FileSink(Protocol):
    """Write side of the temp file store, as used by the materializer."""
    async def save_file(
        self, content: bytes, original_name: str,
    ) -> SavedFileLike: ...


class FileStore(FileSink, Protocol):
    """Full temp file store contract used by services and routes."""
    url_prefix: str

    def url_for(self, filename: str) -> str: ...
    def filename_from_url(self, url: str) -> str | None: ...
    def get_file_path(self, filename: str) -> Path: ...
    def file_exists(self, filename: str) -> bool: ...
    def delete_file(self, filename: str) -> bool: ...
    def delete_files(self, filenames: Iterable[str]) -> dict: ...
    def cleanup_old_files(
        self, hours: float, keep: Iterable[str] = (),
    ) -> dict: ...
