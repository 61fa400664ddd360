# souvenir_shop/users.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import require_admin
from .models import UserRole, UserStatus
from .serializers import user_out
from . import crud

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_admin)])

class StatusIn(BaseModel):
    status: UserStatus

class RoleIn(BaseModel):
    role: UserRole

@router.get("")
async def list_users(db: AsyncSession = Depends(get_db)):
    return [user_out(u) for u in await crud.list_users(db)]

@router.patch("/{user_id}/status")
async def update_status(user_id: str, payload: StatusIn, db: AsyncSession = Depends(get_db)):
    return user_out(await crud.update_user_status(db, user_id, payload.status))

@router.patch("/{user_id}/role")
async def update_role(user_id: str, payload: RoleIn, db: AsyncSession = Depends(get_db)):
    return user_out(await crud.update_user_role(db, user_id, payload.role))

@router.delete("/{user_id}")
async def remove_user(user_id: str, db: AsyncSession = Depends(get_db)):
    await crud.delete_user(db, user_id)
    return {"ok": True}
