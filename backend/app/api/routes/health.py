"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database or the temp store is unusable

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      the load balancer
    - db_manager read through the module at call time: it is set on startup
"""

import logging
import os

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.dependencies import get_temp_file_store
from app.infrastructure import database
from app.infrastructure.temp_file_store import TempFileStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "storefront-customization-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(store: TempFileStore = Depends(get_temp_file_store)):
    """Readiness probe — database connectivity and a writable temp dir."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    storage_ok = os.access(store.base_dir, os.W_OK)
    if not db_ok or not storage_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": (
                    "database_unavailable" if not db_ok else "storage_unavailable"
                ),
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "storage": "healthy"},
    }
