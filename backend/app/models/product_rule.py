"""ProductRule ORM — admin-defined customization requirement scoped to a product type.

Invariants:
    - Always scoped by product_type_id (cascade delete with the type)
    - conflict_with / dependencies are JSON lists of sibling rule ids (str UUIDs);
      the registry guarantees they stay inside the same product type
    - Read-only during validation (loaded fresh per call, never cached)

Design Decisions:
    - JSON columns for edge lists: the adjacency is small (a handful of rules per type)
      and always loaded whole, so a join table buys nothing
    - available_options is free-form JSON interpreted per rule_type
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class ProductRule(Base):
    """Customization rule with conflict/dependency edges to sibling rules."""
    __tablename__ = "product_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    product_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("product_types.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    rule_type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_items: Mapped[int | None] = mapped_column(Integer, nullable=True)
    conflict_with: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    dependencies: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    available_options: Mapped[dict | list | None] = mapped_column(JSON, nullable=True)
    preview_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
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

    product_type: Mapped["ProductType"] = relationship(
        "ProductType", back_populates="rules",
    )
