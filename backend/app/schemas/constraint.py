"""Constraint Schemas — request contracts for item constraint CRUD and cart checks.

Invariants:
    - An item may not be constrained against itself (same id and type)
    - Cart quantity, when given, is >= 1; presence ignores it

Design Decisions:
    - Admin bodies are snake_case (admin panel contract); cart bodies are
      camelCase (storefront contract), both accepted by name too
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.domain_types import ConstraintType, ItemType


class ConstraintCreate(BaseModel):
    target_item_id: UUID
    target_item_type: ItemType
    constraint_type: ConstraintType
    related_item_id: UUID
    related_item_type: ItemType
    message: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_distinct_endpoints(self):
        if (
            self.target_item_id == self.related_item_id
            and self.target_item_type == self.related_item_type
        ):
            raise ValueError("an item cannot be constrained against itself")
        return self


class ConstraintUpdate(BaseModel):
    """Partial update — endpoints re-validated by the registry after merge."""
    target_item_id: UUID | None = None
    target_item_type: ItemType | None = None
    constraint_type: ConstraintType | None = None
    related_item_id: UUID | None = None
    related_item_type: ItemType | None = None
    message: str | None = Field(None, max_length=500)


class CartItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: UUID = Field(alias="itemId")
    item_type: ItemType = Field(alias="itemType")
    quantity: int | None = Field(None, ge=1)


class CartValidationRequest(BaseModel):
    """POST /constraints/validate."""
    items: list[CartItemIn] = Field(default_factory=list)
