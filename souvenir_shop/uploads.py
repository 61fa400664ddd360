import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_current_user
from .models import User
from . import crud, storage

logger = logging.getLogger("souvenir_shop.storage")

router = APIRouter(prefix="/storage", tags=["storage"])

@router.post("/upload-url")
async def generate_upload_url(user: User = Depends(get_current_user)):
    return {"upload_url": storage.generate_upload_url(user.user_id)}

@router.post("/upload/{ticket}")
async def upload(ticket: str, file: UploadFile = File(...), db: AsyncSession = Depends(get_db)):
    user_id = storage.verify_upload_ticket(ticket)
    # one byte past the limit is enough to reject oversize files
    data = await file.read(storage.MAX_UPLOAD_BYTES + 1)
    storage_id = await storage.store_bytes(data, file.content_type)
    await crud.record_upload(db, storage_id, user_id)
    logger.info("[STORAGE] upload by %s -> %s", user_id, storage_id)
    return {"storage_id": storage_id, "url": storage.get_url(storage_id)}

@router.get("/{storage_id}")
async def get_file(storage_id: str):
    return FileResponse(storage.get_path(storage_id))
