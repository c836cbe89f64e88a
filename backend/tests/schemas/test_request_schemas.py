"""Request Schemas — tests for rule and constraint request validation."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.schemas.constraint import CartItemIn, ConstraintCreate
from app.schemas.customization import RuleCreate, RuleUpdate, SelectionIn


def test_rule_edges_deduplicated_and_stringified():
    body = RuleCreate(
        product_type_id=uuid4(), rule_type="TEXT_INPUT", title="  Name  ",
        conflict_with=["b", "a", "b"], dependencies=None,
    )
    assert body.title == "Name"
    assert body.conflict_with == ["b", "a"]
    assert body.dependencies == []


def test_rule_max_items_must_be_positive():
    with pytest.raises(ValidationError):
        RuleCreate(
            product_type_id=uuid4(), rule_type="PHOTO_UPLOAD", title="P", max_items=0,
        )


def test_rule_update_tracks_only_sent_fields():
    body = RuleUpdate(title="New")
    assert body.model_dump(exclude_unset=True) == {"title": "New"}


def test_selection_accepts_camel_case():
    rule_id = uuid4()
    sel = SelectionIn.model_validate(
        {"customizationRuleId": str(rule_id), "customizationType": "TEXT_INPUT", "data": {}},
    )
    assert sel.customization_rule_id == rule_id


def test_constraint_against_itself_rejected():
    item = uuid4()
    with pytest.raises(ValidationError):
        ConstraintCreate(
            target_item_id=item, target_item_type="PRODUCT",
            constraint_type="REQUIRES",
            related_item_id=item, related_item_type="PRODUCT",
        )


def test_same_id_different_type_allowed():
    item = uuid4()
    body = ConstraintCreate(
        target_item_id=item, target_item_type="PRODUCT",
        constraint_type="MUTUALLY_EXCLUSIVE",
        related_item_id=item, related_item_type="ADDITIONAL",
    )
    assert body.related_item_type == "ADDITIONAL"


def test_cart_quantity_at_least_one():
    with pytest.raises(ValidationError):
        CartItemIn.model_validate({"itemId": str(uuid4()), "itemType": "PRODUCT", "quantity": 0})
