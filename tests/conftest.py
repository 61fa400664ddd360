import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="souvenir-shop-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["STORAGE_DIR"] = os.path.join(_TMP, "storage")
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["EVENTS_ENABLED"] = "false"
os.environ["USE_GEMINI"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from httpx import ASGITransport, AsyncClient

from souvenir_shop.app import app
from souvenir_shop.db import AsyncSessionLocal, Base, engine

PASSWORD = "secret-pass"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
async def reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


async def register(client, name, email, password=PASSWORD):
    r = await client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


async def login(client, email, password=PASSWORD):
    r = await client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    body = r.json()
    return {"user": body["user"], "headers": bearer(body["token"])}


async def approved_customer(client, admin, name, email):
    data = await register(client, name, email)
    r = await client.patch(
        f"/users/{data['user']['user_id']}/status",
        json={"status": "APPROVED"},
        headers=admin["headers"],
    )
    assert r.status_code == 200, r.text
    return await login(client, email)


async def make_souvenir(client, admin, **overrides):
    payload = {
        "name": "Kente Table Runner",
        "description": "Hand-woven runner",
        "price": 120.0,
        "image": "0" * 32 + ".png",
        "category": "Textiles",
        "status": "AVAILABLE",
        "stock": 5,
    }
    payload.update(overrides)
    r = await client.post("/souvenirs", json=payload, headers=admin["headers"])
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
async def admin(client):
    data = await register(client, "Ama Mensah", "ama@example.com")
    return {"user": data["user"], "headers": bearer(data["token"])}


@pytest.fixture
async def customer(client, admin):
    return await approved_customer(client, admin, "Kofi Boateng", "kofi@example.com")


async def upload(client, user, data=b"\x89PNG image", content_type="image/png"):
    r = await client.post("/storage/upload-url", headers=user["headers"])
    r = await client.post(r.json()["upload_url"], files={"file": ("image.png", data, content_type)})
    assert r.status_code == 200, r.text
    return r.json()["storage_id"]
