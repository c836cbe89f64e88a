"""Rule Registry — CRUD over ProductRule plus the unified customization lookup.

Invariants:
    - Every edge id (conflict_with / dependencies) names an existing sibling rule
      of the same product type and never the rule itself (RuleReferenceError)
    - Deleting a rule scrubs its id from every sibling's edge lists, so the
      adjacency never dangles after an admin delete
    - Rules are listed by display_order, then title
    - Reads hit the database every call: no cache, no invalidation

Design Decisions:
    - Edge lists stored as JSON arrays of str ids: the whole adjacency of a type is
      a handful of rows, loaded together
    - product_type_id fixed after create: moving a rule would orphan sibling edges
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import RuleType
from app.core.errors import ResourceNotFoundError, RuleReferenceError
from app.core.rule_graph import RuleSnapshot, find_foreign_references
from app.models.additional import Additional
from app.models.product import Product
from app.models.product_rule import ProductRule
from app.models.product_type import ProductType
from app.schemas.customization import RuleCreate, RuleUpdate

logger = logging.getLogger(__name__)


def serialize_rule(rule: ProductRule) -> dict:
    return {
        "id": str(rule.id),
        "product_type_id": str(rule.product_type_id),
        "rule_type": rule.rule_type,
        "title": rule.title,
        "description": rule.description,
        "required": rule.required,
        "max_items": rule.max_items,
        "conflict_with": list(rule.conflict_with or []),
        "dependencies": list(rule.dependencies or []),
        "available_options": rule.available_options,
        "preview_image_url": rule.preview_image_url,
        "display_order": rule.display_order,
        "created_at": rule.created_at.isoformat() if rule.created_at else None,
        "updated_at": rule.updated_at.isoformat() if rule.updated_at else None,
    }


def to_snapshot(rule: ProductRule) -> RuleSnapshot:
    return RuleSnapshot(
        id=str(rule.id),
        title=rule.title,
        rule_type=RuleType(rule.rule_type),
        required=rule.required,
        max_items=rule.max_items,
        conflict_with=tuple(str(r) for r in rule.conflict_with or ()),
        dependencies=tuple(str(r) for r in rule.dependencies or ()),
        display_order=rule.display_order,
        available_options=rule.available_options,
    )


class RuleRegistry:
    """Admin-side persistence of customization rules."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ───────────────────────────────────────────────────

    async def get_rules_by_type(self, product_type_id: UUID) -> list[ProductRule]:
        result = await self.db.execute(
            select(ProductRule)
            .where(ProductRule.product_type_id == product_type_id)
            .order_by(ProductRule.display_order, ProductRule.title),
        )
        return list(result.scalars().all())

    async def get_rule(self, rule_id: UUID) -> ProductRule:
        rule = await self.db.get(ProductRule, rule_id)
        if rule is None:
            raise ResourceNotFoundError("ProductRule", str(rule_id))
        return rule

    async def get_product(self, product_id: UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ResourceNotFoundError("Product", str(product_id))
        return product

    async def get_customizations_by_reference(self, reference_id: UUID) -> dict:
        """Customization config for a product or an additional id."""
        product = await self.db.get(Product, reference_id)
        if product is not None:
            rules = await self.get_rules_by_type(product.type_id)
            return {
                "type": "product",
                "product_type_id": str(product.type_id),
                "rules": [serialize_rule(r) for r in rules],
            }
        if await self.db.get(Additional, reference_id) is not None:
            return {"type": "additional", "rules": []}
        raise ResourceNotFoundError("Item", str(reference_id))

    # ─── Writes ──────────────────────────────────────────────────

    async def create_rule(self, body: RuleCreate) -> ProductRule:
        if await self.db.get(ProductType, body.product_type_id) is None:
            raise ResourceNotFoundError("ProductType", str(body.product_type_id))
        await self._check_references(
            None, body.product_type_id, body.conflict_with, body.dependencies,
        )
        rule = ProductRule(
            product_type_id=body.product_type_id,
            rule_type=body.rule_type.value,
            title=body.title,
            description=body.description,
            required=body.required,
            max_items=body.max_items,
            conflict_with=body.conflict_with,
            dependencies=body.dependencies,
            available_options=body.available_options,
            preview_image_url=body.preview_image_url,
            display_order=body.display_order,
        )
        self.db.add(rule)
        await self.db.commit()
        await self.db.refresh(rule)
        logger.info(
            f"Rule created: {rule.title}", extra={"rule_id": str(rule.id)},
        )
        return rule

    async def update_rule(self, rule_id: UUID, body: RuleUpdate) -> ProductRule:
        rule = await self.get_rule(rule_id)
        changes = body.model_dump(exclude_unset=True)
        if "conflict_with" in changes or "dependencies" in changes:
            await self._check_references(
                str(rule.id), rule.product_type_id,
                changes.get("conflict_with", []), changes.get("dependencies", []),
            )
        for key, value in changes.items():
            if key == "rule_type" and value is not None:
                value = RuleType(value).value
            if key in ("rule_type", "title", "required", "display_order") and value is None:
                continue
            setattr(rule, key, value)
        await self.db.commit()
        await self.db.refresh(rule)
        logger.info(
            f"Rule updated: {rule.title}", extra={"rule_id": str(rule.id)},
        )
        return rule

    async def delete_rule(self, rule_id: UUID) -> None:
        rule = await self.get_rule(rule_id)
        removed = str(rule.id)
        for sibling in await self.get_rules_by_type(rule.product_type_id):
            if sibling.id == rule.id:
                continue
            conflicts = [r for r in sibling.conflict_with or [] if r != removed]
            dependencies = [r for r in sibling.dependencies or [] if r != removed]
            if conflicts != (sibling.conflict_with or []):
                sibling.conflict_with = conflicts
            if dependencies != (sibling.dependencies or []):
                sibling.dependencies = dependencies
        await self.db.delete(rule)
        await self.db.commit()
        logger.info(f"Rule deleted: {rule.title}", extra={"rule_id": removed})

    async def _check_references(
        self,
        rule_id: str | None,
        product_type_id: UUID,
        conflict_with: list[str] | None,
        dependencies: list[str] | None,
    ) -> None:
        if not conflict_with and not dependencies:
            return
        result = await self.db.execute(
            select(ProductRule.id)
            .where(ProductRule.product_type_id == product_type_id),
        )
        sibling_ids = [str(rid) for rid in result.scalars().all()]
        for field_name, ids in (
            ("conflict_with", conflict_with), ("dependencies", dependencies),
        ):
            foreign = find_foreign_references(rule_id, ids or [], sibling_ids)
            if foreign:
                raise RuleReferenceError(field_name, foreign)
