"""ItemConstraint ORM — compatibility rule between two catalog items.

Invariants:
    - One directed row per constraint: target -> related
    - MUTUALLY_EXCLUSIVE is symmetric in meaning even though stored directed
    - REQUIRES means "target requires related"
    - target_item_name / related_item_name are a display cache only; validation
      never reads them to decide presence

Design Decisions:
    - No FK on item ids: an endpoint is either a product or an additional
      (polymorphic by *_item_type), so the registry checks existence on write
    - Both id columns indexed: validation queries the row from either endpoint
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class ItemConstraint(Base):
    __tablename__ = "item_constraints"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    target_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    target_item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    constraint_type: Mapped[str] = mapped_column(String(30), nullable=False)
    related_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    related_item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_item_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    related_item_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
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
