from souvenir_shop import storage

from .conftest import make_souvenir, upload


async def test_upload_through_ticket_and_fetch(client, customer):
    r = await client.post("/storage/upload-url", headers=customer["headers"])
    upload_url = r.json()["upload_url"]
    assert upload_url.startswith("/storage/upload/")

    r = await client.post(upload_url, files={"file": ("photo.png", b"\x89PNG fake", "image/png")})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["storage_id"].endswith(".png")
    assert body["url"] == f"/storage/{body['storage_id']}"

    r = await client.get(body["url"])
    assert r.status_code == 200
    assert r.content == b"\x89PNG fake"


async def test_upload_url_requires_sign_in(client):
    r = await client.post("/storage/upload-url")
    assert r.status_code == 401


async def test_session_token_is_not_an_upload_ticket(client, customer):
    token = customer["headers"]["Authorization"].split()[1]
    r = await client.post(f"/storage/upload/{token}", files={"file": ("a.png", b"x", "image/png")})
    assert r.status_code == 401
    assert r.json()["kind"] == "INVALID_CREDENTIAL"


async def test_empty_upload_is_rejected(client, customer):
    upload_url = (await client.post("/storage/upload-url", headers=customer["headers"])).json()["upload_url"]
    r = await client.post(upload_url, files={"file": ("a.png", b"", "image/png")})
    assert r.status_code == 400


async def test_unknown_or_malformed_ids_are_not_found(client):
    assert (await client.get(f"/storage/{'a' * 32}.png")).status_code == 404
    assert (await client.get("/storage/..%2Fsecrets")).status_code == 404


async def test_delete_is_idempotent():
    storage_id = await storage.store_bytes(b"data", "image/jpeg")
    await storage.delete(storage_id)
    await storage.delete(storage_id)
    await storage.delete(None)
    assert not (storage.STORAGE_DIR / storage_id).exists()


async def test_profile_image_replacement_removes_old_file(client, customer):
    old_id = await upload(client, customer, b"old")
    new_id = await upload(client, customer, b"new")
    await client.patch("/auth/me", json={"profile_image": old_id}, headers=customer["headers"])
    r = await client.patch("/auth/me", json={"profile_image": new_id}, headers=customer["headers"])
    assert r.json()["profile_image_url"] == f"/storage/{new_id}"
    assert not (storage.STORAGE_DIR / old_id).exists()


async def test_cannot_claim_a_file_someone_else_uploaded(client, admin, customer):
    product_image = await upload(client, admin, b"catalogue photo")
    await make_souvenir(client, admin, image=product_image)

    r = await client.patch("/auth/me", json={"profile_image": product_image}, headers=customer["headers"])
    assert r.status_code == 403
    assert r.json()["kind"] == "AUTHORIZATION_FAILED"

    own = await upload(client, customer, b"selfie")
    r = await client.patch("/auth/me", json={"profile_image": own}, headers=customer["headers"])
    assert r.status_code == 200

    r = await client.get(f"/storage/{product_image}")
    assert r.status_code == 200
    assert r.content == b"catalogue photo"


async def test_unregistered_storage_id_cannot_be_a_profile_image(client, customer):
    stray = await storage.store_bytes(b"no owner", "image/png")
    r = await client.patch("/auth/me", json={"profile_image": stray}, headers=customer["headers"])
    assert r.status_code == 403


async def test_deleting_user_removes_their_profile_image(client, admin, customer):
    image = await upload(client, customer)
    await client.patch("/auth/me", json={"profile_image": image}, headers=customer["headers"])
    await client.delete(f"/users/{customer['user']['user_id']}", headers=admin["headers"])
    assert not (storage.STORAGE_DIR / image).exists()


async def test_oversize_upload_is_rejected(client, customer, monkeypatch):
    monkeypatch.setattr(storage, "MAX_UPLOAD_BYTES", 8)
    upload_url = (await client.post("/storage/upload-url", headers=customer["headers"])).json()["upload_url"]
    r = await client.post(upload_url, files={"file": ("big.png", b"x" * 64, "image/png")})
    assert r.status_code == 400
    assert r.json()["detail"] == "Upload too large"

    upload_url = (await client.post("/storage/upload-url", headers=customer["headers"])).json()["upload_url"]
    r = await client.post(upload_url, files={"file": ("ok.png", b"x" * 8, "image/png")})
    assert r.status_code == 200
