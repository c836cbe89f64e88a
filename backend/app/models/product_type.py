"""ProductType ORM — catalog grouping that owns the customization rules.

Invariants:
    - Owns many ProductRule (cascade delete: rules die with their type)
    - category/delivery_type hold domain_types enum values

Design Decisions:
    - Catalog CRUD lives outside this service: the table exists so rules can be
      scoped and products resolved to their type
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import ProductCategory, DeliveryType
from app.db.base import Base


class ProductType(Base):
    """Product type — the scope of a rule set."""
    __tablename__ = "product_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ProductCategory.READY_MADE.value,
    )
    delivery_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=DeliveryType.READY_TO_SHIP.value,
    )
    stock_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    has_3d_preview: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    rules: Mapped[list["ProductRule"]] = relationship(
        "ProductRule", back_populates="product_type",
        cascade="all, delete-orphan", lazy="selectin",
    )
