# souvenir_shop/categories.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import require_admin
from .serializers import category_out
from . import crud

router = APIRouter(prefix="/categories", tags=["categories"])

class CategoryIn(BaseModel):
    name: str

@router.get("")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return [category_out(c) for c in await crud.list_categories(db)]

@router.post("", dependencies=[Depends(require_admin)])
async def create_category(payload: CategoryIn, db: AsyncSession = Depends(get_db)):
    category, created = await crud.create_category(db, payload.name)
    return {**category_out(category), "created": created}

@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
async def remove_category(category_id: int, db: AsyncSession = Depends(get_db)):
    reassigned = await crud.delete_category(db, category_id)
    return {"ok": True, "reassigned": reassigned}
