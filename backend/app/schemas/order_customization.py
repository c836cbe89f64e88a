"""Order Customization Schemas — the body of POST /orders/{orderId}/items/{itemId}/customization.

Invariants:
    - data defaults to {} and must be an object
    - finalArtwork / finalArtworks are top-level convenience fields; the pipeline
      folds them into data as final_artwork / final_artworks before materializing

Design Decisions:
    - camelCase aliases with populate_by_name: storefront sends camelCase,
      scripts and tests may use snake_case
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.domain_types import RuleType


class OrderCustomizationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customization_rule_id: UUID | None = Field(None, alias="customizationRuleId")
    customization_type: RuleType = Field(alias="customizationType")
    title: str | None = Field(None, max_length=200)
    selected_layout_id: UUID | None = Field(None, alias="selectedLayoutId")
    data: dict[str, Any] = Field(default_factory=dict)
    final_artwork: dict[str, Any] | None = Field(None, alias="finalArtwork")
    final_artworks: list[dict[str, Any]] | None = Field(None, alias="finalArtworks")
