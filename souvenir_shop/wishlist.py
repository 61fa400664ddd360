# souvenir_shop/wishlist.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_approved_user
from .models import User
from . import crud

router = APIRouter(prefix="/wishlist", tags=["wishlist"])

class ToggleIn(BaseModel):
    souvenir_id: int

@router.get("")
async def list_wishlist(user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    return await crud.list_wishlist(db, user.user_id)

@router.post("/toggle")
async def toggle(payload: ToggleIn, user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    added = await crud.toggle_wishlist(db, user.user_id, payload.souvenir_id)
    return {"added": added}

@router.delete("/item/{item_id}")
async def remove_item(item_id: int, user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    await crud.remove_wishlist_item(db, user.user_id, item_id)
    return {"ok": True}
