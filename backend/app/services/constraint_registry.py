"""Constraint Registry — CRUD over ItemConstraint and the bidirectional lookup.

Invariants:
    - Both endpoints exist when a constraint is written (404 otherwise)
    - target_item_name / related_item_name re-cached whenever an endpoint changes
    - An item is never constrained against itself (InvalidConstraintError)
    - get_item_constraints / constraints_touching match either endpoint

Design Decisions:
    - Cached names are display-only: CartConstraintValidator decides on ids
    - Endpoint existence checked here rather than by FK: an endpoint is either a
      products row or an additionals row
"""

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ConstraintType, ItemKey, ItemType
from app.core.enforce_constraints import ConstraintSnapshot
from app.core.errors import InvalidConstraintError, ResourceNotFoundError
from app.models.additional import Additional
from app.models.item_constraint import ItemConstraint
from app.models.product import Product
from app.schemas.constraint import ConstraintCreate, ConstraintUpdate

logger = logging.getLogger(__name__)

_ITEM_MODELS = {ItemType.PRODUCT: Product, ItemType.ADDITIONAL: Additional}


def serialize_constraint(c: ItemConstraint) -> dict:
    return {
        "id": str(c.id),
        "target_item_id": str(c.target_item_id),
        "target_item_type": c.target_item_type,
        "target_item_name": c.target_item_name,
        "constraint_type": c.constraint_type,
        "related_item_id": str(c.related_item_id),
        "related_item_type": c.related_item_type,
        "related_item_name": c.related_item_name,
        "message": c.message,
        "created_at": c.created_at.isoformat() if c.created_at else None,
        "updated_at": c.updated_at.isoformat() if c.updated_at else None,
    }


def to_snapshot(c: ItemConstraint) -> ConstraintSnapshot:
    return ConstraintSnapshot(
        id=str(c.id),
        target_item_id=str(c.target_item_id),
        target_item_type=ItemType(c.target_item_type),
        constraint_type=ConstraintType(c.constraint_type),
        related_item_id=str(c.related_item_id),
        related_item_type=ItemType(c.related_item_type),
        message=c.message,
        target_item_name=c.target_item_name,
        related_item_name=c.related_item_name,
    )


class ConstraintRegistry:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def item_name(self, item_id: UUID, item_type: ItemType) -> str:
        model = _ITEM_MODELS[ItemType(item_type)]
        item = await self.db.get(model, item_id)
        if item is None:
            raise ResourceNotFoundError(model.__name__, str(item_id))
        return item.name

    # ─── Reads ───────────────────────────────────────────────────

    async def list_constraints(self) -> list[ItemConstraint]:
        result = await self.db.execute(
            select(ItemConstraint).order_by(ItemConstraint.created_at.desc()),
        )
        return list(result.scalars().all())

    async def get_constraint(self, constraint_id: UUID) -> ItemConstraint:
        constraint = await self.db.get(ItemConstraint, constraint_id)
        if constraint is None:
            raise ResourceNotFoundError("ItemConstraint", str(constraint_id))
        return constraint

    async def get_item_constraints(
        self, item_id: UUID, item_type: ItemType,
    ) -> list[ItemConstraint]:
        """Constraints where the item is either the target or the related side."""
        item_type = ItemType(item_type).value
        result = await self.db.execute(
            select(ItemConstraint)
            .where(or_(
                (ItemConstraint.target_item_id == item_id)
                & (ItemConstraint.target_item_type == item_type),
                (ItemConstraint.related_item_id == item_id)
                & (ItemConstraint.related_item_type == item_type),
            ))
            .order_by(ItemConstraint.created_at.desc()),
        )
        return list(result.scalars().all())

    async def constraints_touching(
        self, present: Iterable[ItemKey],
    ) -> list[ConstraintSnapshot]:
        """Snapshots of every constraint with at least one endpoint in `present`."""
        keys = set(present)
        if not keys:
            return []
        ids = {UUID(item_id) for item_id, _ in keys}
        result = await self.db.execute(
            select(ItemConstraint)
            .where(or_(
                ItemConstraint.target_item_id.in_(ids),
                ItemConstraint.related_item_id.in_(ids),
            ))
            .order_by(ItemConstraint.created_at, ItemConstraint.id),
        )
        snapshots = [to_snapshot(c) for c in result.scalars().all()]
        return [
            s for s in snapshots
            if s.target_key in keys or s.related_key in keys
        ]

    # ─── Writes ──────────────────────────────────────────────────

    async def create_constraint(self, body: ConstraintCreate) -> ItemConstraint:
        constraint = ItemConstraint(
            target_item_id=body.target_item_id,
            target_item_type=body.target_item_type.value,
            constraint_type=body.constraint_type.value,
            related_item_id=body.related_item_id,
            related_item_type=body.related_item_type.value,
            message=body.message,
            target_item_name=await self.item_name(
                body.target_item_id, body.target_item_type,
            ),
            related_item_name=await self.item_name(
                body.related_item_id, body.related_item_type,
            ),
        )
        self.db.add(constraint)
        await self.db.commit()
        await self.db.refresh(constraint)
        logger.info(
            f"Constraint created: {constraint.constraint_type}",
            extra={"constraint_id": str(constraint.id)},
        )
        return constraint

    async def update_constraint(
        self, constraint_id: UUID, body: ConstraintUpdate,
    ) -> ItemConstraint:
        constraint = await self.get_constraint(constraint_id)
        changes = {
            k: v for k, v in body.model_dump(exclude_unset=True).items()
            if v is not None or k == "message"
        }
        for key, value in changes.items():
            if isinstance(value, (ItemType, ConstraintType)):
                value = value.value
            setattr(constraint, key, value)

        if (
            constraint.target_item_id == constraint.related_item_id
            and constraint.target_item_type == constraint.related_item_type
        ):
            raise InvalidConstraintError("an item cannot be constrained against itself")
        if changes.keys() & {"target_item_id", "target_item_type"}:
            constraint.target_item_name = await self.item_name(
                constraint.target_item_id, ItemType(constraint.target_item_type),
            )
        if changes.keys() & {"related_item_id", "related_item_type"}:
            constraint.related_item_name = await self.item_name(
                constraint.related_item_id, ItemType(constraint.related_item_type),
            )
        await self.db.commit()
        await self.db.refresh(constraint)
        logger.info(
            "Constraint updated", extra={"constraint_id": str(constraint.id)},
        )
        return constraint

    async def delete_constraint(self, constraint_id: UUID) -> None:
        constraint = await self.get_constraint(constraint_id)
        await self.db.delete(constraint)
        await self.db.commit()
        logger.info(
            "Constraint deleted", extra={"constraint_id": str(constraint_id)},
        )
