# souvenir_shop/events.py
"""Change notifications for live views.

Every committed mutation publishes a small JSON envelope on a Redis channel;
clients follow ``GET /events`` (Server-Sent Events) and refetch whatever
collection changed.
"""
import json
import logging
import os
from typing import Any, AsyncIterator, Iterable, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError

load_dotenv()

logger = logging.getLogger("souvenir_shop.events")

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
EVENTS_ENABLED = os.getenv("EVENTS_ENABLED", "true").lower() in ("1", "true", "yes")
CHANNEL = os.getenv("EVENTS_CHANNEL", "souvenir_shop:changes")

redis = Redis.from_url(REDIS_URL, decode_responses=True)

router = APIRouter(tags=["events"])


async def publish(collection: str, action: str, ids: Optional[Iterable[Any]] = None):
    if not EVENTS_ENABLED:
        return
    envelope = {"collection": collection, "action": action, "ids": [str(i) for i in (ids or [])]}
    try:
        await redis.publish(CHANNEL, json.dumps(envelope))
    except RedisError as e:
        logger.warning("[EVENTS] publish failed for %s/%s: %s", collection, action, e)


async def _event_stream(request: Request) -> AsyncIterator[str]:
    pubsub = redis.pubsub()
    await pubsub.subscribe(CHANNEL)
    try:
        yield ": connected\n\n"
        while not await request.is_disconnected():
            msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=15.0)
            if msg is None:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {msg['data']}\n\n"
    finally:
        await pubsub.unsubscribe(CHANNEL)
        await pubsub.aclose()


@router.get("/events")
async def stream_events(request: Request):
    if not EVENTS_ENABLED:
        return StreamingResponse(iter([": events disabled\n\n"]), media_type="text/event-stream")
    return StreamingResponse(_event_stream(request), media_type="text/event-stream")
