"""Temp Files — serving materialized files and operating the temp store.

Invariants:
    - Served files carry a guessed Content-Type and
      Content-Disposition: inline; filename="<name>"
    - Names with "..", "/" or "\\" never reach the filesystem (400)
    - The cleanup endpoint never deletes promoted files

Design Decisions:
    - Two read paths: /temp-files/{fileId} (record id or filename) for API clients,
      and the URL prefix stored in customization_data for plain <img> tags
"""

import logging
import mimetypes

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_temp_file_store
from app.config import get_settings
from app.core.errors import ResourceNotFoundError
from app.infrastructure.database import get_db
from app.infrastructure.temp_file_store import TempFileStore, check_filename
from app.services.temp_files import TempFileService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["temp-files"])


def get_temp_file_service(
    db: AsyncSession = Depends(get_db),
    store: TempFileStore = Depends(get_temp_file_store),
) -> TempFileService:
    return TempFileService(db, store, ttl_hours=get_settings().temp_file_ttl_hours)


def _file_response(store: TempFileStore, filename: str, mime_type: str | None = None):
    return FileResponse(
        store.get_file_path(filename),
        media_type=(
            mime_type or mimetypes.guess_type(filename)[0]
            or "application/octet-stream"
        ),
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.get("/temp-files/{file_id}")
async def get_temp_file(
    file_id: str, service: TempFileService = Depends(get_temp_file_service),
):
    record, filename = await service.resolve(file_id)
    return _file_response(
        service.store, filename, record.mime_type if record else None,
    )


@router.get(get_settings().temp_files_url_prefix + "/{filename}")
async def serve_temp_file(
    filename: str, store: TempFileStore = Depends(get_temp_file_store),
):
    if not store.file_exists(filename):
        raise ResourceNotFoundError("TempFile", filename)
    return _file_response(store, filename)


# ─── Admin ──────────────────────────────────────────────────────

@router.get("/admin/temp-files")
async def list_temp_files(store: TempFileStore = Depends(get_temp_file_store)):
    files = store.list_files()
    return {
        "files": [f.to_dict() for f in files],
        "count": len(files),
        "totalSize": sum(f.size for f in files),
    }


@router.delete("/admin/temp-files/{filename}")
async def delete_temp_file(
    filename: str, service: TempFileService = Depends(get_temp_file_service),
):
    check_filename(filename)
    result = await service.delete_files([filename])
    await service.db.commit()
    if not result["deleted"]:
        raise ResourceNotFoundError("TempFile", filename)
    return {"status": "deleted", "filename": filename}


@router.post("/admin/temp-files/cleanup")
async def cleanup_temp_files(
    hours: float | None = Query(None, gt=0),
    service: TempFileService = Depends(get_temp_file_service),
):
    result = await service.cleanup_expired(hours)
    await service.db.commit()
    return result
