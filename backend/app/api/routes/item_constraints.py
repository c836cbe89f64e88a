"""Item Constraints — admin constraint CRUD and the cart compatibility check.

Invariants:
    - POST /constraints/validate answers 200 with {"valid", "violations"}
    - Admin writes 404 when an endpoint item does not exist

Design Decisions:
    - GET /admin/constraints/{item_id}?itemType= is bidirectional: an item shows
      every constraint it takes part in, as target or as related
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ItemType
from app.infrastructure.database import get_db
from app.schemas.constraint import (
    CartValidationRequest, ConstraintCreate, ConstraintUpdate,
)
from app.services.cart_constraints import validate_item_constraints
from app.services.constraint_registry import (
    ConstraintRegistry, serialize_constraint,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["constraints"])


@router.post("/constraints/validate")
async def validate_cart(
    body: CartValidationRequest, db: AsyncSession = Depends(get_db),
):
    result = await validate_item_constraints(db, body.items)
    return result.to_dict()


@router.get("/admin/constraints")
async def list_constraints(db: AsyncSession = Depends(get_db)):
    constraints = await ConstraintRegistry(db).list_constraints()
    return [serialize_constraint(c) for c in constraints]


@router.post("/admin/constraints", status_code=status.HTTP_201_CREATED)
async def create_constraint(
    body: ConstraintCreate, db: AsyncSession = Depends(get_db),
):
    constraint = await ConstraintRegistry(db).create_constraint(body)
    return serialize_constraint(constraint)


@router.get("/admin/constraints/{item_id}")
async def get_item_constraints(
    item_id: UUID,
    item_type: ItemType = Query(alias="itemType"),
    db: AsyncSession = Depends(get_db),
):
    constraints = await ConstraintRegistry(db).get_item_constraints(
        item_id, item_type,
    )
    return [serialize_constraint(c) for c in constraints]


@router.put("/admin/constraints/{constraint_id}")
async def update_constraint(
    constraint_id: UUID, body: ConstraintUpdate,
    db: AsyncSession = Depends(get_db),
):
    constraint = await ConstraintRegistry(db).update_constraint(
        constraint_id, body,
    )
    return serialize_constraint(constraint)


@router.delete("/admin/constraints/{constraint_id}")
async def delete_constraint(
    constraint_id: UUID, db: AsyncSession = Depends(get_db),
):
    await ConstraintRegistry(db).delete_constraint(constraint_id)
    return {"status": "deleted", "id": str(constraint_id)}
