"""Customization Schemas — request contracts for rule CRUD and rule validation.

Invariants:
    - Rule edge lists are normalized on input: str ids, de-duplicated, order kept
    - max_items, when present, is a positive int
    - Selection bodies accept the camelCase names storefront clients send
      (customizationRuleId, productId, itemId) as well as snake_case
    - Selection rule ids are UUIDs, so any spelling of an id matches its rule

Design Decisions:
    - RuleUpdate mirrors RuleCreate with every field optional: partial updates
      apply model_dump(exclude_unset=True)
    - product_type_id is immutable after create (moving a rule between types would
      break its siblings' edges)
"""

from uuid import UUID
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import RuleType
from app.core.rule_graph import dedupe_ids


class _RuleFields(BaseModel):
    @field_validator("conflict_with", "dependencies", mode="before", check_fields=False)
    @classmethod
    def normalize_edges(cls, v):
        if v is None:
            return []
        return dedupe_ids(v)

    @field_validator("title", check_fields=False)
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v


class RuleCreate(_RuleFields):
    """Admin rule creation (POST /admin/customization/rule)."""
    product_type_id: UUID
    rule_type: RuleType
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    required: bool = False
    max_items: int | None = Field(None, gt=0)
    conflict_with: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    available_options: Any = None
    preview_image_url: str | None = Field(None, max_length=500)
    display_order: int = 0


class RuleUpdate(_RuleFields):
    """Partial rule update (PUT /admin/customization/rule/{id})."""
    rule_type: RuleType | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    required: bool | None = None
    max_items: int | None = Field(None, gt=0)
    conflict_with: list[str] | None = None
    dependencies: list[str] | None = None
    available_options: Any = None
    preview_image_url: str | None = Field(None, max_length=500)
    display_order: int | None = None


# --- Validation requests ------------------------------------------------------

class SelectionIn(BaseModel):
    """One selected customization: rule id (optional), type, free-form data."""
    model_config = ConfigDict(populate_by_name=True)

    customization_rule_id: UUID | None = Field(None, alias="customizationRuleId")
    customization_type: RuleType | None = Field(None, alias="customizationType")
    data: Any = None


class ProductValidationRequest(BaseModel):
    """POST /customization/validate — rule graph check for a product."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: UUID = Field(alias="productId")
    customizations: list[SelectionIn] = Field(default_factory=list)


class CustomizationInput(BaseModel):
    """One entry of POST /customizations/validate `inputs`."""
    model_config = ConfigDict(populate_by_name=True)

    customization_id: UUID = Field(alias="customizationId")
    customization_type: RuleType | None = Field(None, alias="customizationType")
    data: Any = None


class ItemValidationRequest(BaseModel):
    """POST /customizations/validate — rule graph plus typed content checks."""
    model_config = ConfigDict(populate_by_name=True)

    item_id: UUID = Field(alias="itemId")
    inputs: list[CustomizationInput] = Field(default_factory=list)
