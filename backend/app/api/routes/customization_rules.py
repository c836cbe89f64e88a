"""Customization Rules — admin rule CRUD, unified lookup and rule validation.

Invariants:
    - Validation endpoints answer 200 with {"valid", "errors"} for business-rule
      violations; only unknown products/items are 404
    - Admin writes reject edges to rules of another product type (400)

Design Decisions:
    - Paths kept exactly as storefront and admin clients call them (no version prefix)
    - Thin handlers: RuleRegistry / CustomizationValidator own the logic
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database import get_db
from app.schemas.customization import (
    ItemValidationRequest, ProductValidationRequest, RuleCreate, RuleUpdate,
)
from app.services.customization_validation import CustomizationValidator
from app.services.rule_registry import RuleRegistry, serialize_rule

logger = logging.getLogger(__name__)
router = APIRouter(tags=["customization"])


# ─── Storefront ─────────────────────────────────────────────────

@router.get("/customizations/{reference_id}")
async def get_customizations(
    reference_id: UUID, db: AsyncSession = Depends(get_db),
):
    """Customization config for a product or an additional."""
    return await RuleRegistry(db).get_customizations_by_reference(reference_id)


@router.post("/customizations/validate")
async def validate_customizations(
    body: ItemValidationRequest, db: AsyncSession = Depends(get_db),
):
    """Rule graph plus typed data checks for one item's inputs."""
    result = await CustomizationValidator(db).validate_item_inputs(
        body.item_id, body.inputs,
    )
    return result.to_dict()


@router.post("/customization/validate")
async def validate_product_rules(
    body: ProductValidationRequest, db: AsyncSession = Depends(get_db),
):
    """Required / conflict / dependency / max_items check for a product."""
    result = await CustomizationValidator(db).validate_product_rules(
        body.product_id, body.customizations,
    )
    return result.to_dict()


# ─── Admin ──────────────────────────────────────────────────────

@router.get("/admin/customization/rule/type/{product_type_id}")
async def list_rules_by_type(
    product_type_id: UUID, db: AsyncSession = Depends(get_db),
):
    rules = await RuleRegistry(db).get_rules_by_type(product_type_id)
    return [serialize_rule(r) for r in rules]


@router.post(
    "/admin/customization/rule", status_code=status.HTTP_201_CREATED,
)
async def create_rule(body: RuleCreate, db: AsyncSession = Depends(get_db)):
    rule = await RuleRegistry(db).create_rule(body)
    return serialize_rule(rule)


@router.get("/admin/customization/rule/{rule_id}")
async def get_rule(rule_id: UUID, db: AsyncSession = Depends(get_db)):
    return serialize_rule(await RuleRegistry(db).get_rule(rule_id))


@router.put("/admin/customization/rule/{rule_id}")
async def update_rule(
    rule_id: UUID, body: RuleUpdate, db: AsyncSession = Depends(get_db),
):
    rule = await RuleRegistry(db).update_rule(rule_id, body)
    return serialize_rule(rule)


@router.delete("/admin/customization/rule/{rule_id}")
async def delete_rule(rule_id: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a rule and scrub it from its siblings' edges."""
    await RuleRegistry(db).delete_rule(rule_id)
    return {"status": "deleted", "id": str(rule_id)}
