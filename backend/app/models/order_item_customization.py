"""OrderItemCustomization ORM — persisted, materialized customization of an order item.

Invariants:
    - customization_data never contains a `base64` key (materializer strips them
      before the row is built)
    - At most one row per (order_item_id, customization_rule_id): re-submitting a
      rule updates the existing row
    - Files referenced by preview_url are promoted temp files (never swept)

Design Decisions:
    - customization_rule_id without FK: the rule may be deleted later, the order
      keeps its historical record
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class OrderItemCustomization(Base):
    __tablename__ = "order_item_customizations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    order_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("order_items.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    customization_rule_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    customization_type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    customization_data: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    selected_layout_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    order_item: Mapped["OrderItem"] = relationship(
        "OrderItem", back_populates="customizations",
    )
