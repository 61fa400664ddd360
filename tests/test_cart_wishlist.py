from souvenir_shop import crud

from .conftest import approved_customer, make_souvenir


async def test_adding_same_souvenir_twice_keeps_one_line(client, admin, customer):
    s = await make_souvenir(client, admin)
    await client.post("/cart/add", json={"souvenir_id": s["id"]}, headers=customer["headers"])
    r = await client.post("/cart/add", json={"souvenir_id": s["id"], "quantity": 2}, headers=customer["headers"])

    cart = r.json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["count"] == 3
    assert cart["subtotal"] == 360.0
    assert cart["items"][0]["souvenir"]["name"] == "Kente Table Runner"


async def test_update_and_remove_cart_lines(client, admin, customer):
    s = await make_souvenir(client, admin)
    cart = (await client.post("/cart/add", json={"souvenir_id": s["id"]}, headers=customer["headers"])).json()
    item_id = cart["items"][0]["id"]

    r = await client.patch(f"/cart/item/{item_id}", json={"quantity": 4}, headers=customer["headers"])
    assert r.json()["count"] == 4
    r = await client.patch(f"/cart/item/{item_id}", json={"quantity": 0}, headers=customer["headers"])
    assert r.status_code == 422

    r = await client.delete(f"/cart/item/{item_id}", headers=customer["headers"])
    assert r.json() == {"items": [], "count": 0, "subtotal": 0}


async def test_cart_lines_belong_to_their_owner(client, admin, customer):
    s = await make_souvenir(client, admin)
    cart = (await client.post("/cart/add", json={"souvenir_id": s["id"]}, headers=customer["headers"])).json()
    item_id = cart["items"][0]["id"]

    other = await approved_customer(client, admin, "Esi Owusu", "esi@example.com")
    r = await client.patch(f"/cart/item/{item_id}", json={"quantity": 9}, headers=other["headers"])
    assert r.status_code == 404
    await client.delete(f"/cart/item/{item_id}", headers=other["headers"])

    mine = (await client.get("/cart", headers=customer["headers"])).json()
    assert mine["count"] == 1
    assert (await client.get("/cart", headers=other["headers"])).json()["items"] == []


async def test_adding_missing_souvenir_is_not_found(client, customer):
    r = await client.post("/cart/add", json={"souvenir_id": 999}, headers=customer["headers"])
    assert r.status_code == 404


async def test_cart_requires_sign_in(client):
    r = await client.get("/cart")
    assert r.status_code == 401


async def test_wishlist_toggle_parity(client, admin, customer):
    s = await make_souvenir(client, admin)
    results = []
    for _ in range(3):
        r = await client.post("/wishlist/toggle", json={"souvenir_id": s["id"]}, headers=customer["headers"])
        results.append(r.json()["added"])
    assert results == [True, False, True]

    items = (await client.get("/wishlist", headers=customer["headers"])).json()
    assert len(items) == 1
    assert items[0]["souvenir"]["id"] == s["id"]

    await client.delete(f"/wishlist/item/{items[0]['id']}", headers=customer["headers"])
    assert (await client.get("/wishlist", headers=customer["headers"])).json() == []


async def test_wishlist_keeps_entries_for_deleted_souvenirs(client, admin, customer):
    s = await make_souvenir(client, admin)
    await client.post("/wishlist/toggle", json={"souvenir_id": s["id"]}, headers=customer["headers"])
    await client.delete(f"/souvenirs/{s['id']}", headers=admin["headers"])

    items = (await client.get("/wishlist", headers=customer["headers"])).json()
    assert items[0]["souvenir"] is None


async def test_add_merges_into_line_created_by_concurrent_request(client, admin, customer, db, monkeypatch):
    s = await make_souvenir(client, admin)
    await client.post("/cart/add", json={"souvenir_id": s["id"], "quantity": 2}, headers=customer["headers"])

    real_lookup = crud._cart_line
    lookups = []

    async def lookup_that_misses_once(session, user_id, souvenir_id):
        lookups.append(souvenir_id)
        if len(lookups) == 1:
            return None
        return await real_lookup(session, user_id, souvenir_id)

    monkeypatch.setattr(crud, "_cart_line", lookup_that_misses_once)
    await crud.add_to_cart(db, customer["user"]["user_id"], s["id"], 3)

    cart = (await client.get("/cart", headers=customer["headers"])).json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 5
    assert len(lookups) == 2
