"""Customization Validation — shell around the pure rule engine.

Invariants:
    - Rules are loaded fresh on every call (no cache) and frozen into a RuleGraph
    - Business-rule violations come back as RuleCheckResult, never as exceptions
    - Only an unknown product/item raises (ResourceNotFoundError, 404)
    - Same input, same stored rules → identical error list

Design Decisions:
    - Impureim sandwich: read rows → snapshot → pure evaluate → return data
    - Typed data checks run only for inputs whose rule is in the graph; unknown
      rule ids are already reported by the graph check
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import RuleType
from app.core.enforce_rules import (
    RuleCheckResult, SelectionSnapshot, evaluate_rule_selection,
)
from app.core.errors import ResourceNotFoundError
from app.core.rule_graph import RuleGraph
from app.models.additional import Additional
from app.models.product import Product
from app.schemas.customization import CustomizationInput, SelectionIn
from app.schemas.customization_data import validate_customization_data
from app.services.rule_registry import RuleRegistry, to_snapshot

logger = logging.getLogger(__name__)


def _rule_key(rule_id: UUID | None) -> str | None:
    """Graph keys are canonical str(uuid)."""
    return str(rule_id) if rule_id is not None else None


class CustomizationValidator:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.registry = RuleRegistry(db)

    async def load_graph_for_product(self, product_id: UUID) -> RuleGraph:
        product = await self.registry.get_product(product_id)
        rules = await self.registry.get_rules_by_type(product.type_id)
        return RuleGraph.build(to_snapshot(r) for r in rules)

    async def load_graph_for_item(self, item_id: UUID) -> RuleGraph:
        """Products carry their type's rules; additionals carry none."""
        if await self.db.get(Product, item_id) is not None:
            return await self.load_graph_for_product(item_id)
        if await self.db.get(Additional, item_id) is not None:
            return RuleGraph.build([])
        raise ResourceNotFoundError("Item", str(item_id))

    async def validate_product_rules(
        self, product_id: UUID, selections: Sequence[SelectionIn],
    ) -> RuleCheckResult:
        graph = await self.load_graph_for_product(product_id)
        result = evaluate_rule_selection(graph, [
            SelectionSnapshot(rule_id=_rule_key(s.customization_rule_id), data=s.data)
            for s in selections
        ])
        if not result.valid:
            logger.info(
                f"Customization rejected with {len(result.errors)} error(s)",
                extra={"product_id": str(product_id)},
            )
        return result

    async def validate_item_inputs(
        self, item_id: UUID, inputs: Sequence[CustomizationInput],
    ) -> RuleCheckResult:
        """Rule graph check plus per-rule-type data checks."""
        graph = await self.load_graph_for_item(item_id)
        result = evaluate_rule_selection(graph, [
            SelectionSnapshot(rule_id=_rule_key(i.customization_id), data=i.data)
            for i in inputs
        ])
        for entry in inputs:
            rule = graph.rules.get(_rule_key(entry.customization_id))
            if rule is None:
                continue
            if entry.customization_type and entry.customization_type != rule.rule_type:
                result.errors.append(
                    f'"{rule.title}": expected {rule.rule_type.value} data, '
                    f"got {RuleType(entry.customization_type).value}",
                )
                continue
            result.errors.extend(validate_customization_data(
                rule.title, rule.rule_type, entry.data, rule.available_options,
            ))
        return result
