"""Shared Route Dependencies — temp file store and materializer wiring.

Invariants:
    - One TempFileStore per process, rooted at settings.temp_uploads_dir
    - A fresh ArtworkMaterializer per request (its semaphore is per call anyway)

Design Decisions:
    - Plain Depends() providers: tests swap the store via app.dependency_overrides
"""

from functools import lru_cache

from fastapi import Depends

from app.config import get_settings
from app.infrastructure.temp_file_store import TempFileStore
from app.services.artwork_materializer import ArtworkMaterializer


@lru_cache
def get_temp_file_store() -> TempFileStore:
    settings = get_settings()
    return TempFileStore(
        settings.temp_uploads_dir,
        url_prefix=settings.temp_files_url_prefix,
        max_bytes=settings.temp_file_max_bytes,
    )


def get_materializer(
    store: TempFileStore = Depends(get_temp_file_store),
) -> ArtworkMaterializer:
    return ArtworkMaterializer(
        store, max_concurrency=get_settings().materialize_max_concurrency,
    )
