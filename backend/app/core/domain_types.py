"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - MULTI_ITEM_RULE_TYPES is the single source for which rule types honor max_items

Design Decisions:
    - str Enums: values are stored as-is in String columns and serialize to JSON without encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class RuleType(str, Enum):
    """Kinds of customization a product type can ask for."""
    PHOTO_UPLOAD = "PHOTO_UPLOAD"
    LAYOUT_PRESET = "LAYOUT_PRESET"
    LAYOUT_WITH_PHOTOS = "LAYOUT_WITH_PHOTOS"
    TEXT_INPUT = "TEXT_INPUT"
    OPTION_SELECT = "OPTION_SELECT"
    ITEM_SUBSTITUTION = "ITEM_SUBSTITUTION"


class ItemType(str, Enum):
    """Catalog item kinds that can take part in a cart constraint."""
    PRODUCT = "PRODUCT"
    ADDITIONAL = "ADDITIONAL"


ItemKey = tuple[str, ItemType]  # (item id, item type): cart presence key


class ConstraintType(str, Enum):
    """MUTUALLY_EXCLUSIVE is symmetric; REQUIRES is target → related."""
    MUTUALLY_EXCLUSIVE = "MUTUALLY_EXCLUSIVE"
    REQUIRES = "REQUIRES"


class ProductCategory(str, Enum):
    """Product type category — maps to product_types.category."""
    READY_MADE = "MODELO_PRONTO"
    CUSTOMIZABLE = "PERSONALIZAVEL"


class DeliveryType(str, Enum):
    """Product type fulfilment mode — maps to product_types.delivery_type."""
    READY_TO_SHIP = "PRONTA_ENTREGA"
    MADE_TO_ORDER = "SOB_ENCOMENDA"


class SubmissionStage(str, Enum):
    """Customization submission lifecycle. No file writes happen before VALIDATED."""
    RECEIVED = "received"
    VALIDATED = "validated"
    MATERIALIZED = "materialized"
    PERSISTED = "persisted"


# Rule types whose data carries a countable `photos` array
MULTI_ITEM_RULE_TYPES: dict[RuleType, str] = {
    RuleType.PHOTO_UPLOAD: "photos",
    RuleType.LAYOUT_WITH_PHOTOS: "photos",
}
