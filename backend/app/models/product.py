"""Product ORM — sellable catalog item resolved to its ProductType for rule lookup.

Invariants:
    - type_id is mandatory: every product validates against its type's rules

Design Decisions:
    - Only the columns this service reads (id, name, type_id); pricing and stock
      belong to the catalog service
"""

import uuid

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Product(Base):
    """Catalog product (PRODUCT endpoint of item constraints)."""
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("product_types.id"), nullable=False,
    )
