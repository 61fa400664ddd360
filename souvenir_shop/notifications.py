# souvenir_shop/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_current_user
from .models import User
from .serializers import notification_out
from . import crud

router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("")
async def list_notifications(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return [notification_out(n) for n in await crud.list_notifications(db, user.user_id)]

@router.post("/read-all")
async def mark_all_read(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return {"updated": await crud.mark_all_read(db, user.user_id)}

@router.delete("")
async def clear_all(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return {"deleted": await crud.clear_notifications(db, user.user_id)}

@router.delete("/{notification_id}")
async def remove_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_notification(db, user.user_id, notification_id)
    return {"ok": True}
