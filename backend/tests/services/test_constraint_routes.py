"""Item constraint routes — admin CRUD and the cart compatibility check.

Tests cover:
    - create caches endpoint names; unknown endpoint → 404; self-constraint → 400
    - GET /admin/constraints/{item_id} returns both directions
    - update re-caches names, delete removes
    - POST /constraints/validate: MUTUALLY_EXCLUSIVE symmetric, REQUIRES directional
"""

import uuid

import pytest


def _constraint_body(target, target_type, constraint_type, related, related_type, **extra):
    return {
        "target_item_id": str(target.id),
        "target_item_type": target_type,
        "constraint_type": constraint_type,
        "related_item_id": str(related.id),
        "related_item_type": related_type,
        **extra,
    }


@pytest.fixture
async def exclusive(client, catalog):
    """Product "White mug" cannot be bought with the "Greeting card" additional."""
    response = await client.post("/admin/constraints", json=_constraint_body(
        catalog["product"], "PRODUCT", "MUTUALLY_EXCLUSIVE",
        catalog["additional"], "ADDITIONAL",
    ))
    assert response.status_code == 201
    return response.json()


async def test_create_caches_names(exclusive):
    assert exclusive["target_item_name"] == "White mug"
    assert exclusive["related_item_name"] == "Greeting card"
    assert exclusive["message"] is None


async def test_create_unknown_endpoint_404(client, catalog):
    body = _constraint_body(
        catalog["product"], "PRODUCT", "REQUIRES", catalog["product"], "ADDITIONAL",
    )
    response = await client.post("/admin/constraints", json=body)
    assert response.status_code == 404


async def test_create_self_constraint_400(client, catalog):
    body = _constraint_body(
        catalog["product"], "PRODUCT", "REQUIRES", catalog["product"], "PRODUCT",
    )
    response = await client.post("/admin/constraints", json=body)
    assert response.status_code == 400


async def test_item_lookup_is_bidirectional(client, catalog, exclusive):
    as_target = await client.get(
        f"/admin/constraints/{catalog['product'].id}", params={"itemType": "PRODUCT"},
    )
    as_related = await client.get(
        f"/admin/constraints/{catalog['additional'].id}",
        params={"itemType": "ADDITIONAL"},
    )
    wrong_type = await client.get(
        f"/admin/constraints/{catalog['additional'].id}", params={"itemType": "PRODUCT"},
    )

    assert [c["id"] for c in as_target.json()] == [exclusive["id"]]
    assert [c["id"] for c in as_related.json()] == [exclusive["id"]]
    assert wrong_type.json() == []


async def test_update_recaches_name(client, catalog, exclusive):
    response = await client.put(f"/admin/constraints/{exclusive['id']}", json={
        "related_item_id": str(catalog["other_product"].id),
        "related_item_type": "PRODUCT",
        "message": "Pick one",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["related_item_name"] == "Photo frame"
    assert body["message"] == "Pick one"


async def test_update_into_self_constraint_400(client, catalog, exclusive):
    response = await client.put(f"/admin/constraints/{exclusive['id']}", json={
        "related_item_id": str(catalog["product"].id),
        "related_item_type": "PRODUCT",
    })
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CONSTRAINT"


async def test_delete_constraint(client, exclusive):
    response = await client.delete(f"/admin/constraints/{exclusive['id']}")
    assert response.json() == {"status": "deleted", "id": exclusive["id"]}
    assert (await client.get("/admin/constraints")).json() == []

    again = await client.delete(f"/admin/constraints/{exclusive['id']}")
    assert again.status_code == 404


# ─── Cart validation ────────────────────────────────────────────

def _cart(*entries):
    return {"items": [
        {"itemId": str(item.id), "itemType": item_type, "quantity": 1}
        for item, item_type in entries
    ]}


async def test_exclusive_blocks_both_present(client, catalog, exclusive):
    response = await client.post("/constraints/validate", json=_cart(
        (catalog["additional"], "ADDITIONAL"), (catalog["product"], "PRODUCT"),
    ))

    assert response.status_code == 200
    assert response.json() == {"valid": False, "violations": [{
        "message": '"White mug" and "Greeting card" cannot be purchased together',
        "constraintId": exclusive["id"],
    }]}


async def test_exclusive_allows_one_side(client, catalog, exclusive):
    response = await client.post("/constraints/validate", json=_cart(
        (catalog["product"], "PRODUCT"), (catalog["product"], "PRODUCT"),
    ))
    assert response.json() == {"valid": True, "violations": []}


async def test_requires_is_directional(client, catalog):
    created = await client.post("/admin/constraints", json=_constraint_body(
        catalog["product"], "PRODUCT", "REQUIRES",
        catalog["additional"], "ADDITIONAL", message="Mugs ship with a card",
    ))
    constraint_id = created.json()["id"]

    only_target = await client.post("/constraints/validate", json=_cart(
        (catalog["product"], "PRODUCT"),
    ))
    only_related = await client.post("/constraints/validate", json=_cart(
        (catalog["additional"], "ADDITIONAL"),
    ))

    assert only_target.json()["violations"] == [
        {"message": "Mugs ship with a card", "constraintId": constraint_id},
    ]
    assert only_related.json()["valid"] is True


async def test_empty_cart_is_valid(client, catalog, exclusive):
    response = await client.post("/constraints/validate", json={"items": []})
    assert response.json() == {"valid": True, "violations": []}
