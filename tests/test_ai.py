import base64
import json
from types import SimpleNamespace

import pytest

from souvenir_shop import ai, storage

from .conftest import make_souvenir


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def gemini(monkeypatch):
    def install(response=None, error=None):
        models = FakeModels(response, error)
        monkeypatch.setattr(ai, "gemini_client", SimpleNamespace(aio=SimpleNamespace(models=models)))
        return models
    return install


def inline_response(mime_type, data):
    part = SimpleNamespace(inline_data=SimpleNamespace(mime_type=mime_type, data=data))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


GIFT_REQUEST = {"occasion": "Birthday", "recipient": "Mother", "budget": 200, "theme": "Traditional"}


async def test_gift_suggestions_resolve_to_catalogue_items(client, admin, gemini):
    runner = await make_souvenir(client, admin)
    await make_souvenir(client, admin, name="Clay Pot", status="OUT_OF_STOCK")
    models = gemini(SimpleNamespace(text=json.dumps({"suggestions": [
        {"souvenir_name": "kente table runner ", "reason": "Bright and festive"},
        {"souvenir_name": "Golden Stool", "reason": "Invented by the model"},
    ]})))

    r = await client.post("/ai/gifts", json=GIFT_REQUEST)
    assert r.status_code == 200, r.text
    suggestions = r.json()["suggestions"]
    assert len(suggestions) == 1
    assert suggestions[0]["souvenir_id"] == runner["id"]
    assert suggestions[0]["souvenir_name"] == "Kente Table Runner"
    assert suggestions[0]["reason"] == "Bright and festive"
    assert suggestions[0]["souvenir"]["price"] == 120.0

    prompt = models.calls[0]["contents"]
    assert 'Name: "Kente Table Runner"' in prompt
    assert "Clay Pot" not in prompt
    assert "Occasion: Birthday" in prompt


async def test_malformed_model_output_gives_no_suggestions(client, admin, gemini):
    await make_souvenir(client, admin)
    gemini(SimpleNamespace(text="this is not json"))
    r = await client.post("/ai/gifts", json=GIFT_REQUEST)
    assert r.json() == {"suggestions": []}


async def test_model_errors_surface_as_upstream_failures(client, admin, gemini):
    gemini(error=RuntimeError("quota exceeded"))
    r = await client.post("/ai/gifts", json=GIFT_REQUEST)
    assert r.status_code == 502
    assert r.json()["kind"] == "UPSTREAM_FAILED"


async def test_unconfigured_assistant_is_upstream_failure(client, admin):
    assert ai.gemini_client is None
    r = await client.post("/ai/gifts", json=GIFT_REQUEST)
    assert r.status_code == 502
    assert r.json()["kind"] == "UPSTREAM_FAILED"


async def test_generated_image_can_be_saved_to_storage(client, admin, gemini):
    gemini(inline_response("image/png", b"png-bytes"))
    r = await client.post(
        "/ai/souvenir-image",
        json={"name": "Clay Pot", "description": "Hand-thrown", "save": True},
        headers=admin["headers"],
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["image"] == "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
    assert (storage.STORAGE_DIR / body["storage_id"]).read_bytes() == b"png-bytes"

    r = await client.patch("/auth/me", json={"profile_image": body["storage_id"]}, headers=admin["headers"])
    assert r.status_code == 200


async def test_image_generation_without_image_part_fails(client, admin, gemini):
    gemini(SimpleNamespace(candidates=[]))
    r = await client.post("/ai/souvenir-image", json={"name": "Clay Pot"}, headers=admin["headers"])
    assert r.status_code == 502


async def test_image_generation_is_admin_only(client, customer, gemini):
    gemini(inline_response("image/png", b"png-bytes"))
    r = await client.post("/ai/souvenir-image", json={"name": "Clay Pot"}, headers=customer["headers"])
    assert r.status_code == 403


async def test_narration_returns_base64_audio(client, admin, gemini):
    s = await make_souvenir(client, admin)
    models = gemini(inline_response("audio/L16;rate=24000", b"\x00\x01pcm"))
    r = await client.post(f"/ai/souvenirs/{s['id']}/narration")
    assert r.json() == {
        "mime_type": "audio/L16;rate=24000",
        "audio": base64.b64encode(b"\x00\x01pcm").decode(),
    }
    assert "Meet the Kente Table Runner" in models.calls[0]["contents"]

    r = await client.post("/ai/souvenirs/999/narration")
    assert r.status_code == 404
