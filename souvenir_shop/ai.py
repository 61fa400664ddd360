# souvenir_shop/ai.py
import base64
import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from fastapi import APIRouter, Depends
from google import genai
from google.genai import types
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .checkout import CURRENCY_SYMBOL, SHOP_NAME
from .db import get_db
from .deps import require_admin
from .errors import UpstreamFailed
from .models import SouvenirStatus, User
from . import crud, storage

load_dotenv()

logger = logging.getLogger("souvenir_shop.ai")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
USE_GEMINI = os.getenv("USE_GEMINI", "false").lower() in ("1", "true", "yes")
TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")
IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")
TTS_MODEL = os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts")
TTS_VOICE = os.getenv("GEMINI_TTS_VOICE", "Kore")

gemini_client = None
if USE_GEMINI and GEMINI_API_KEY:
    gemini_client = genai.Client(api_key=GEMINI_API_KEY)

router = APIRouter(prefix="/ai", tags=["ai"])

RECOMMENDATION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "suggestions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "souvenir_name": types.Schema(type=types.Type.STRING),
                    "reason": types.Schema(type=types.Type.STRING),
                },
                required=["souvenir_name", "reason"],
            ),
        )
    },
    required=["suggestions"],
)

SHOPPER_INSTRUCTION = f"""You are an expert personal shopper for {SHOP_NAME}, an elegant boutique.
Your goal is to suggest perfect gifts based on occasion, recipient, budget (in {CURRENCY_SYMBOL}), and style preferences.

IMPORTANT: Only suggest items from the "Available Souvenirs" list provided below.
Use the EXACT "Name" of the souvenir in your JSON response so the application can find the matching product."""


def _client():
    if gemini_client is None:
        raise UpstreamFailed("AI assistant is not configured")
    return gemini_client

def _inline_parts(response) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return []
    return [p for p in (candidates[0].content.parts or []) if getattr(p, "inline_data", None)]

def build_gift_prompt(
    souvenirs: List[Dict[str, Any]], occasion: str, recipient: str, budget: float, theme: str
) -> str:
    catalogue = "\n".join(
        f'ID: {s["id"]} | Name: "{s["name"]}" | Price: {CURRENCY_SYMBOL}{s["price"]} '
        f'| Category: {s["category"]} | Description: {s["description"]}'
        for s in souvenirs
        if s["status"] != SouvenirStatus.OUT_OF_STOCK.value
    )
    return f"""
Customer Request:
- Occasion: {occasion}
- Recipient: {recipient}
- Max Budget: {CURRENCY_SYMBOL}{budget}
- Preferred Styles/Themes: {theme or 'Any style'}

Available Souvenirs:
{catalogue}

Based on these details, pick the top 2-3 most appropriate gifts.
Focus on matching the "{theme}" style specifically if mentioned.
Explain why each item is a thoughtful choice for this {occasion}."""


async def get_gift_recommendations(
    souvenirs: List[Dict[str, Any]], occasion: str, recipient: str, budget: float, theme: str = ""
) -> Dict[str, Any]:
    client = _client()
    prompt = build_gift_prompt(souvenirs, occasion, recipient, budget, theme)
    try:
        response = await client.aio.models.generate_content(
            model=TEXT_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=SHOPPER_INSTRUCTION,
                response_mime_type="application/json",
                response_schema=RECOMMENDATION_SCHEMA,
            ),
        )
    except Exception as e:
        logger.error("[AI] gift recommendations failed: %s", e)
        raise UpstreamFailed("Gift recommendations are unavailable right now") from e

    try:
        parsed = json.loads((response.text or '{"suggestions": []}').strip())
    except json.JSONDecodeError:
        logger.warning("[AI] could not parse recommendation JSON")
        return {"suggestions": []}

    by_name = {s["name"].strip().lower(): s for s in souvenirs}
    suggestions = []
    for item in parsed.get("suggestions") or []:
        match = by_name.get(str(item.get("souvenir_name", "")).strip().lower())
        if not match:
            logger.info("[AI] dropping unknown suggestion %r", item.get("souvenir_name"))
            continue
        suggestions.append({
            "souvenir_id": match["id"],
            "souvenir_name": match["name"],
            "reason": item.get("reason", ""),
            "souvenir": match,
        })
    return {"suggestions": suggestions}


async def generate_souvenir_image(name: str, description: str) -> Tuple[str, bytes]:
    """Returns (mime_type, image bytes)."""
    client = _client()
    prompt = (
        f'A professional, high-quality product photography of a premium souvenir called "{name}". '
        f"Description: {description}. The aesthetic should be elegant, clean, and high-end."
    )
    try:
        response = await client.aio.models.generate_content(
            model=IMAGE_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(image_config=types.ImageConfig(aspect_ratio="1:1")),
        )
    except Exception as e:
        logger.error("[AI] image generation failed: %s", e)
        raise UpstreamFailed("Image generation failed") from e

    for part in _inline_parts(response):
        if part.inline_data.data:
            return part.inline_data.mime_type or "image/png", part.inline_data.data
    raise UpstreamFailed("No image was generated")


async def speak_product_story(name: str, description: str) -> Tuple[str, str]:
    """Returns (mime_type, base64 audio)."""
    client = _client()
    prompt = f'Narrate this artisan story elegantly for a boutique shop: "Meet the {name}. {description}"'
    try:
        response = await client.aio.models.generate_content(
            model=TTS_MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=TTS_VOICE)
                    )
                ),
            ),
        )
    except Exception as e:
        logger.error("[AI] narration failed: %s", e)
        raise UpstreamFailed("Narration failed") from e

    parts = _inline_parts(response)
    if not parts or not parts[0].inline_data.data:
        raise UpstreamFailed("No audio generated")
    inline = parts[0].inline_data
    return inline.mime_type or "audio/pcm", base64.b64encode(inline.data).decode("ascii")


# ---------- routes ----------
class GiftIn(BaseModel):
    occasion: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    budget: float = Field(gt=0)
    theme: str = ""

class ImageIn(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    save: bool = False

@router.post("/gifts")
async def gift_recommendations(payload: GiftIn, db: AsyncSession = Depends(get_db)):
    souvenirs = await crud.list_souvenirs(db)
    return await get_gift_recommendations(
        souvenirs, payload.occasion, payload.recipient, payload.budget, payload.theme
    )

@router.post("/souvenir-image")
async def souvenir_image(
    payload: ImageIn,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    mime_type, data = await generate_souvenir_image(payload.name, payload.description)
    out: Dict[str, Optional[str]] = {
        "image": f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}",
    }
    if payload.save:
        storage_id = await storage.store_bytes(data, mime_type)
        await crud.record_upload(db, storage_id, user.user_id)
        out["storage_id"] = storage_id
        out["url"] = storage.get_url(storage_id)
    return out

@router.post("/souvenirs/{souvenir_id}/narration")
async def narrate(souvenir_id: int, db: AsyncSession = Depends(get_db)):
    s = await crud.get_souvenir_detail(db, souvenir_id)
    mime_type, audio = await speak_product_story(s["name"], s["description"])
    return {"mime_type": mime_type, "audio": audio}
