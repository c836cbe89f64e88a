"""Order Customizations — save, list and file-health check for order item customizations.

Invariants:
    - A rejected submission answers 400 {"valid": false, "errors"} and writes no file
    - A saved submission answers 201 with the persisted, base64-free record
    - Unknown order / order item / rule → 404

Design Decisions:
    - failed_nodes surfaced as "failedArtworks" so the client can re-upload the
      artworks that were dropped instead of failing the whole save
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_materializer, get_temp_file_store
from app.config import get_settings
from app.infrastructure.database import get_db
from app.infrastructure.temp_file_store import TempFileStore
from app.schemas.order_customization import OrderCustomizationIn
from app.services.artwork_materializer import ArtworkMaterializer
from app.services.order_customization import (
    OrderCustomizationService, serialize_customization,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["order-customizations"])


def get_order_customization_service(
    db: AsyncSession = Depends(get_db),
    store: TempFileStore = Depends(get_temp_file_store),
    materializer: ArtworkMaterializer = Depends(get_materializer),
) -> OrderCustomizationService:
    return OrderCustomizationService(
        db, store, materializer, ttl_hours=get_settings().temp_file_ttl_hours,
    )


@router.post("/{order_id}/items/{item_id}/customization")
async def save_customization(
    order_id: UUID,
    item_id: UUID,
    body: OrderCustomizationIn,
    service: OrderCustomizationService = Depends(get_order_customization_service),
):
    """Validate, materialize artwork, then persist the customization."""
    outcome = await service.save_order_item_customization(order_id, item_id, body)
    if outcome.customization is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=outcome.validation.to_dict(),
        )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            **serialize_customization(outcome.customization),
            "failedArtworks": outcome.failed_nodes,
        },
    )


@router.get("/{order_id}/customizations")
async def list_customizations(
    order_id: UUID,
    service: OrderCustomizationService = Depends(get_order_customization_service),
):
    return await service.list_order_customizations(order_id)


@router.get("/{order_id}/customizations/files")
async def check_customization_files(
    order_id: UUID,
    service: OrderCustomizationService = Depends(get_order_customization_service),
):
    return await service.check_customization_files(order_id)
