"""Additional ORM — add-on catalog item (ADDITIONAL endpoint of item constraints)."""

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Additional(Base):
    """Add-on sold alongside products (card, ribbon, chocolate box)."""
    __tablename__ = "additionals"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
