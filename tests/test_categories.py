from .conftest import make_souvenir


async def _category_names(client):
    return [c["name"] for c in (await client.get("/categories")).json()]


async def test_create_is_idempotent_ignoring_case(client, admin):
    r = await client.post("/categories", json={"name": "Jewelry"}, headers=admin["headers"])
    first = r.json()
    assert first["created"] is True

    r = await client.post("/categories", json={"name": "  jewelry "}, headers=admin["headers"])
    again = r.json()
    assert again["created"] is False
    assert again["id"] == first["id"]
    assert again["name"] == "Jewelry"
    assert await _category_names(client) == ["Jewelry"]


async def test_blank_name_is_rejected(client, admin):
    r = await client.post("/categories", json={"name": "   "}, headers=admin["headers"])
    assert r.status_code == 400
    assert r.json()["kind"] == "VALIDATION"


async def test_delete_moves_products_to_uncategorized(client, admin):
    cat = (await client.post("/categories", json={"name": "Textiles"}, headers=admin["headers"])).json()
    a = await make_souvenir(client, admin)
    b = await make_souvenir(client, admin, name="Kente Stole")
    untouched = await make_souvenir(client, admin, name="Clay Pot", category="Pottery")

    r = await client.delete(f"/categories/{cat['id']}", headers=admin["headers"])
    assert r.json() == {"ok": True, "reassigned": 2}

    for s in (a, b):
        assert (await client.get(f"/souvenirs/{s['id']}")).json()["category"] == "Uncategorized"
    assert (await client.get(f"/souvenirs/{untouched['id']}")).json()["category"] == "Pottery"
    assert await _category_names(client) == ["Uncategorized"]


async def test_delete_unused_category_does_not_create_sentinel(client, admin):
    cat = (await client.post("/categories", json={"name": "Pottery"}, headers=admin["headers"])).json()
    r = await client.delete(f"/categories/{cat['id']}", headers=admin["headers"])
    assert r.json() == {"ok": True, "reassigned": 0}
    assert await _category_names(client) == []


async def test_delete_reuses_existing_sentinel(client, admin):
    await client.post("/categories", json={"name": "uncategorized"}, headers=admin["headers"])
    cat = (await client.post("/categories", json={"name": "Textiles"}, headers=admin["headers"])).json()
    s = await make_souvenir(client, admin)

    await client.delete(f"/categories/{cat['id']}", headers=admin["headers"])
    assert await _category_names(client) == ["uncategorized"]
    assert (await client.get(f"/souvenirs/{s['id']}")).json()["category"] == "uncategorized"


async def test_cannot_delete_sentinel_while_in_use(client, admin):
    cat = (await client.post("/categories", json={"name": "Uncategorized"}, headers=admin["headers"])).json()
    await make_souvenir(client, admin, category="Uncategorized")
    r = await client.delete(f"/categories/{cat['id']}", headers=admin["headers"])
    assert r.status_code == 409
    assert r.json()["kind"] == "CONFLICT"


async def test_delete_missing_category_is_a_noop(client, admin):
    r = await client.delete("/categories/999", headers=admin["headers"])
    assert r.json() == {"ok": True, "reassigned": 0}
