# souvenir_shop/storage.py
"""Local file storage for product and profile images.

Files live flat under STORAGE_DIR, named by an opaque storage id
(uuid hex plus an extension derived from the content type).
"""
import logging
import mimetypes
import os
import re
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from starlette.concurrency import run_in_threadpool

from .errors import NotFound, ValidationFailed
from .security import create_access_token, decode_token

load_dotenv()

logger = logging.getLogger("souvenir_shop.storage")

STORAGE_DIR = Path(os.getenv("STORAGE_DIR", "./storage"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
UPLOAD_TICKET_MINUTES = 60

_STORAGE_ID_RE = re.compile(r"^[0-9a-f]{32}(\.[a-z0-9]{1,8})?$")


def _path_for(storage_id: str) -> Path:
    if not _STORAGE_ID_RE.match(storage_id or ""):
        raise NotFound("File not found")
    return STORAGE_DIR / storage_id

def get_url(storage_id: Optional[str]) -> Optional[str]:
    if not storage_id:
        return None
    return f"{PUBLIC_BASE_URL}/storage/{storage_id}"

def get_path(storage_id: str) -> Path:
    path = _path_for(storage_id)
    if not path.is_file():
        raise NotFound("File not found")
    return path

async def store_bytes(data: bytes, content_type: Optional[str]) -> str:
    if not data:
        raise ValidationFailed("Empty upload")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationFailed("Upload too large")
    ext = mimetypes.guess_extension(content_type or "") or ""
    storage_id = uuid.uuid4().hex + ext.lower()
    STORAGE_DIR.mkdir(parents=True, exist_ok=True)
    await run_in_threadpool((STORAGE_DIR / storage_id).write_bytes, data)
    logger.info("[STORAGE] stored %s (%d bytes)", storage_id, len(data))
    return storage_id

async def delete(storage_id: Optional[str]):
    if not storage_id:
        return
    try:
        path = _path_for(storage_id)
    except NotFound:
        logger.warning("[STORAGE] refusing to delete malformed id %r", storage_id)
        return
    await run_in_threadpool(path.unlink, True)
    logger.info("[STORAGE] deleted %s", storage_id)


def generate_upload_url(user_id: str) -> str:
    ticket = create_access_token(
        {"sub": user_id, "purpose": "upload"},
        timedelta(minutes=UPLOAD_TICKET_MINUTES),
    )
    return f"{PUBLIC_BASE_URL}/storage/upload/{ticket}"

def verify_upload_ticket(ticket: str) -> str:
    return decode_token(ticket, "upload")["sub"]
