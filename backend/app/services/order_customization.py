"""Order Customization Pipeline — validate, materialize, persist one item's customization.

Invariants:
    - Stages run in order RECEIVED → VALIDATED → MATERIALIZED → PERSISTED; a
      rejected submission stops before any file write
    - Persisted customization_data never contains a `base64` key
    - One row per (order item, rule): re-submitting a rule updates that row
    - Every temp file referenced by the saved row is promoted to the order in the
      same transaction as the row itself
    - Files referenced only by the replaced version are deleted after the commit,
      unless another customization of the same order still points at them, and
      never when the file was promoted to a different order

Design Decisions:
    - Rejections are data (SaveOutcome.validation), the route turns them into a
      400 {"valid": false, "errors"}; unknown order/item/rule raise 404
    - Files are written before the row is committed: a crash in between leaves an
      orphan file the TTL sweep reclaims, never a row pointing at nothing
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.artwork_payload import collect_preview_urls, fold_final_artwork
from app.core.domain_types import RuleType, SubmissionStage
from app.core.enforce_rules import (
    RuleCheckResult, SelectionSnapshot, check_max_items,
)
from app.core.errors import ResourceNotFoundError
from app.core.repository_protocols import FileStore
from app.core.rule_graph import RuleGraph
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_item_customization import OrderItemCustomization
from app.models.product import Product
from app.models.product_rule import ProductRule
from app.schemas.customization_data import validate_customization_data
from app.schemas.order_customization import OrderCustomizationIn
from app.services.artwork_materializer import ArtworkMaterializer
from app.services.rule_registry import to_snapshot
from app.services.temp_files import TempFileService

logger = logging.getLogger(__name__)


def serialize_customization(c: OrderItemCustomization) -> dict:
    return {
        "id": str(c.id),
        "orderItemId": str(c.order_item_id),
        "customizationRuleId": (
            str(c.customization_rule_id) if c.customization_rule_id else None
        ),
        "customizationType": c.customization_type,
        "title": c.title,
        "customizationData": c.customization_data,
        "selectedLayoutId": (
            str(c.selected_layout_id) if c.selected_layout_id else None
        ),
        "createdAt": c.created_at.isoformat() if c.created_at else None,
        "updatedAt": c.updated_at.isoformat() if c.updated_at else None,
    }


@dataclass
class SaveOutcome:
    stage: SubmissionStage
    validation: RuleCheckResult = field(default_factory=RuleCheckResult)
    customization: OrderItemCustomization | None = None
    failed_nodes: list[str] = field(default_factory=list)


class OrderCustomizationService:
    def __init__(
        self,
        db: AsyncSession,
        store: FileStore,
        materializer: ArtworkMaterializer,
        ttl_hours: float = 48,
    ):
        self.db = db
        self.store = store
        self.materializer = materializer
        self.temp_files = TempFileService(db, store, ttl_hours)

    # ─── Lookups ─────────────────────────────────────────────────

    async def get_order(self, order_id: UUID) -> Order:
        order = await self.db.get(Order, order_id)
        if order is None:
            raise ResourceNotFoundError("Order", str(order_id))
        return order

    async def get_order_item(self, order_id: UUID, item_id: UUID) -> OrderItem:
        result = await self.db.execute(
            select(OrderItem)
            .where(OrderItem.id == item_id)
            .where(OrderItem.order_id == order_id),
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise ResourceNotFoundError("OrderItem", str(item_id))
        return item

    async def _order_customizations(
        self, order_id: UUID,
    ) -> list[OrderItemCustomization]:
        result = await self.db.execute(
            select(OrderItemCustomization)
            .join(OrderItem, OrderItem.id == OrderItemCustomization.order_item_id)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItemCustomization.created_at),
        )
        return list(result.scalars().all())

    # ─── Validate ────────────────────────────────────────────────

    async def _validate(
        self, item: OrderItem, rule: ProductRule | None,
        payload: OrderCustomizationIn, title: str,
    ) -> RuleCheckResult:
        result = RuleCheckResult()
        rule_type = payload.customization_type
        if rule is not None:
            product = await self.db.get(Product, item.product_id)
            if product is None or product.type_id != rule.product_type_id:
                result.errors.append(
                    f'Customization rule "{rule.id}" is not available for this product',
                )
                return result
            if RuleType(rule.rule_type) != rule_type:
                result.errors.append(
                    f'"{title}": expected {rule.rule_type} data, got {rule_type.value}',
                )
                return result
            result.errors.extend(check_max_items(
                RuleGraph.build([to_snapshot(rule)]),
                [SelectionSnapshot(rule_id=str(rule.id), data=payload.data)],
            ))
        result.errors.extend(validate_customization_data(
            title, rule_type, payload.data,
            rule.available_options if rule is not None else None,
        ))
        return result

    # ─── Save ────────────────────────────────────────────────────

    async def save_order_item_customization(
        self, order_id: UUID, item_id: UUID, payload: OrderCustomizationIn,
    ) -> SaveOutcome:
        await self.get_order(order_id)
        item = await self.get_order_item(order_id, item_id)
        rule = None
        if payload.customization_rule_id is not None:
            rule = await self.db.get(ProductRule, payload.customization_rule_id)
            if rule is None:
                raise ResourceNotFoundError(
                    "ProductRule", str(payload.customization_rule_id),
                )
        title = payload.title or (
            rule.title if rule is not None else payload.customization_type.value
        )

        validation = await self._validate(item, rule, payload, title)
        if not validation.valid:
            logger.info(
                f"Customization rejected with {len(validation.errors)} error(s)",
                extra={"order_id": str(order_id), "order_item_id": str(item_id)},
            )
            return SaveOutcome(stage=SubmissionStage.RECEIVED, validation=validation)

        materialized = await self.materializer.materialize(fold_final_artwork(
            payload.data, payload.final_artwork, payload.final_artworks,
        ))

        record = await self._find_existing(item_id, payload.customization_rule_id)
        previous_urls = (
            collect_preview_urls(record.customization_data) if record else []
        )
        if record is None:
            record = OrderItemCustomization(
                order_item_id=item_id,
                customization_rule_id=payload.customization_rule_id,
            )
            self.db.add(record)
        record.customization_type = payload.customization_type.value
        record.title = title
        record.customization_data = materialized.data
        record.selected_layout_id = payload.selected_layout_id

        await self.temp_files.register_many(materialized.saved_files)
        current = self.temp_files.filenames_for_urls(
            collect_preview_urls(materialized.data),
        )
        await self.temp_files.promote_filenames(current, order_id)
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(
            f"Customization saved ({len(materialized.saved_files)} file(s))",
            extra={"order_id": str(order_id), "order_item_id": str(item_id)},
        )

        stale = set(self.temp_files.filenames_for_urls(previous_urls)) - set(current)
        if stale:
            await self._delete_stale_files(order_id, stale)

        return SaveOutcome(
            stage=SubmissionStage.PERSISTED,
            customization=record,
            failed_nodes=materialized.failed_nodes,
        )

    async def _find_existing(
        self, item_id: UUID, rule_id: UUID | None,
    ) -> OrderItemCustomization | None:
        if rule_id is None:
            return None
        result = await self.db.execute(
            select(OrderItemCustomization)
            .where(OrderItemCustomization.order_item_id == item_id)
            .where(OrderItemCustomization.customization_rule_id == rule_id),
        )
        return result.scalars().first()

    async def _delete_stale_files(self, order_id: UUID, stale: set[str]) -> None:
        still_referenced = set()
        for other in await self._order_customizations(order_id):
            still_referenced.update(self.temp_files.filenames_for_urls(
                collect_preview_urls(other.customization_data),
            ))
        removable = sorted(await self.temp_files.owned_by(
            stale - still_referenced, order_id,
        ))
        if not removable:
            return
        result = await self.temp_files.delete_files(removable)
        await self.db.commit()
        logger.info(
            "Replaced customization files removed",
            extra={"order_id": str(order_id), **result},
        )

    # ─── Reads ───────────────────────────────────────────────────

    async def list_order_customizations(self, order_id: UUID) -> list[dict]:
        await self.get_order(order_id)
        return [
            serialize_customization(c)
            for c in await self._order_customizations(order_id)
        ]

    async def check_customization_files(self, order_id: UUID) -> dict:
        """Whether every temp file each customization references is still on disk."""
        await self.get_order(order_id)
        files = {}
        for c in await self._order_customizations(order_id):
            names = self.temp_files.filenames_for_urls(
                collect_preview_urls(c.customization_data),
            )
            files[str(c.id)] = all(self.store.file_exists(n) for n in names)
        return {"files": files}
