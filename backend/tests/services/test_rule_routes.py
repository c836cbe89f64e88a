"""Customization rule routes — admin CRUD and the unified customization lookup.

Tests cover:
    - create/get/list/update/delete round through the HTTP API
    - edges to another product type's rules or to the rule itself → 400
    - deleting a rule scrubs its id from siblings' edge lists
    - /customizations/{id} resolves products, additionals, unknown ids
    - a product type eagerly loads its rules and deletes them with itself
"""

import uuid

import pytest

from app.core.domain_types import RuleType
from app.models.product_rule import ProductRule
from app.models.product_type import ProductType


def _rule_body(product_type_id, title, **fields):
    return {
        "product_type_id": str(product_type_id),
        "rule_type": fields.pop("rule_type", RuleType.PHOTO_UPLOAD.value),
        "title": title,
        **fields,
    }


async def test_create_and_get_rule(client, catalog):
    type_id = catalog["product_type"].id
    response = await client.post(
        "/admin/customization/rule",
        json=_rule_body(type_id, "  Photos  ", required=True, max_items=3),
    )
    assert response.status_code == 201
    created = response.json()
    assert created["title"] == "Photos"
    assert created["required"] is True
    assert created["max_items"] == 3
    assert created["conflict_with"] == []

    fetched = await client.get(f"/admin/customization/rule/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == created["id"]


async def test_create_rule_unknown_type_404(client, catalog):
    response = await client.post(
        "/admin/customization/rule", json=_rule_body(uuid.uuid4(), "Photos"),
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_create_rule_rejects_zero_max_items(client, catalog):
    response = await client.post(
        "/admin/customization/rule",
        json=_rule_body(catalog["product_type"].id, "Photos", max_items=0),
    )
    assert response.status_code == 400


async def test_list_rules_ordered(client, catalog, make_rule):
    type_id = catalog["product_type"].id
    await make_rule(type_id, "Text", RuleType.TEXT_INPUT, display_order=2)
    await make_rule(type_id, "Photos", display_order=1)
    await make_rule(type_id, "Layout", RuleType.LAYOUT_PRESET, display_order=1)

    response = await client.get(f"/admin/customization/rule/type/{type_id}")

    assert response.status_code == 200
    assert [r["title"] for r in response.json()] == ["Layout", "Photos", "Text"]


async def test_edges_to_other_type_rejected(client, catalog, make_rule, test_db):
    foreign_type = ProductType(name="Frame")
    test_db.add(foreign_type)
    await test_db.commit()
    foreign = await make_rule(foreign_type.id, "Foreign")

    response = await client.post(
        "/admin/customization/rule",
        json=_rule_body(
            catalog["product_type"].id, "Photos", dependencies=[str(foreign.id)],
        ),
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_RULE_REFERENCE"
    assert error["context"]["field"] == "dependencies"


async def test_update_rejects_self_reference(client, catalog, make_rule):
    rule = await make_rule(catalog["product_type"].id, "Photos")

    response = await client.put(
        f"/admin/customization/rule/{rule.id}",
        json={"conflict_with": [str(rule.id)]},
    )

    assert response.status_code == 400


async def test_partial_update_keeps_other_fields(client, catalog, make_rule):
    type_id = catalog["product_type"].id
    other = await make_rule(type_id, "Layout", RuleType.LAYOUT_PRESET)
    rule = await make_rule(type_id, "Photos", required=True, max_items=4)

    response = await client.put(
        f"/admin/customization/rule/{rule.id}",
        json={"conflict_with": [str(other.id), str(other.id)], "title": "Pictures"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Pictures"
    assert body["conflict_with"] == [str(other.id)]
    assert body["required"] is True
    assert body["max_items"] == 4


async def test_update_unknown_rule_404(client, catalog):
    response = await client.put(
        f"/admin/customization/rule/{uuid.uuid4()}", json={"title": "X"},
    )
    assert response.status_code == 404


async def test_delete_scrubs_sibling_edges(client, catalog, make_rule):
    type_id = catalog["product_type"].id
    photos = await make_rule(type_id, "Photos")
    layout = await make_rule(
        type_id, "Layout", RuleType.LAYOUT_PRESET,
        dependencies=[photos.id], conflict_with=[photos.id],
    )

    response = await client.delete(f"/admin/customization/rule/{photos.id}")

    assert response.status_code == 200
    assert response.json() == {"status": "deleted", "id": str(photos.id)}
    remaining = (await client.get(f"/admin/customization/rule/{layout.id}")).json()
    assert remaining["dependencies"] == []
    assert remaining["conflict_with"] == []
    missing = await client.get(f"/admin/customization/rule/{photos.id}")
    assert missing.status_code == 404


# ─── Unified lookup ─────────────────────────────────────────────

async def test_customizations_for_product(client, catalog, make_rule):
    await make_rule(catalog["product_type"].id, "Photos")

    response = await client.get(f"/customizations/{catalog['product'].id}")

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "product"
    assert body["product_type_id"] == str(catalog["product_type"].id)
    assert [r["title"] for r in body["rules"]] == ["Photos"]


async def test_customizations_for_additional(client, catalog):
    response = await client.get(f"/customizations/{catalog['additional'].id}")
    assert response.json() == {"type": "additional", "rules": []}


async def test_customizations_unknown_reference_404(client, catalog):
    response = await client.get(f"/customizations/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.parametrize("path", [
    "/admin/customization/rule/not-a-uuid",
    "/customizations/not-a-uuid",
])
async def test_malformed_ids_rejected(client, path):
    response = await client.get(path)
    assert response.status_code == 400


async def test_deleting_product_type_removes_its_rules(test_db, make_rule):
    product_type = ProductType(name="Poster")
    test_db.add(product_type)
    await test_db.commit()
    rule = await make_rule(product_type.id, "Photos")

    loaded = await test_db.get(ProductType, product_type.id, populate_existing=True)
    assert [r.id for r in loaded.rules] == [rule.id]

    await test_db.delete(loaded)
    await test_db.commit()

    assert await test_db.get(ProductRule, rule.id) is None
