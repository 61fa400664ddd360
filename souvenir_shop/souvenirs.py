# souvenir_shop/souvenirs.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import require_admin
from .errors import NotFound
from .models import SouvenirStatus
from . import crud

router = APIRouter(prefix="/souvenirs", tags=["souvenirs"])

class SouvenirIn(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    image: str
    category: str = Field(min_length=1)
    status: SouvenirStatus = SouvenirStatus.AVAILABLE
    stock: int = Field(default=0, ge=0)

class SouvenirPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    image: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1)
    status: Optional[SouvenirStatus] = None
    stock: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", "description", "price", "category", "status", "stock")
    @classmethod
    def not_null(cls, value):
        # only image may be cleared
        if value is None:
            raise ValueError("may not be null")
        return value

class StatusIn(BaseModel):
    status: SouvenirStatus

class BulkStatusIn(BaseModel):
    ids: List[int]
    status: SouvenirStatus

class BulkIdsIn(BaseModel):
    ids: List[int]


@router.get("")
async def list_souvenirs(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    status: Optional[SouvenirStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_souvenirs(db, search=search, category=category, status=status.value if status else None)

@router.post("", dependencies=[Depends(require_admin)])
async def create_souvenir(payload: SouvenirIn, db: AsyncSession = Depends(get_db)):
    s = await crud.create_souvenir(db, payload.model_dump(mode="json"))
    return await crud.get_souvenir_detail(db, s.id)

@router.patch("/bulk/status", dependencies=[Depends(require_admin)])
async def update_statuses(payload: BulkStatusIn, db: AsyncSession = Depends(get_db)):
    updated = await crud.update_souvenir_statuses(db, payload.ids, payload.status.value)
    return {"updated": updated}

@router.post("/bulk/delete", dependencies=[Depends(require_admin)])
async def remove_many(payload: BulkIdsIn, db: AsyncSession = Depends(get_db)):
    return {"deleted": await crud.delete_souvenirs(db, payload.ids)}

@router.get("/{souvenir_id}")
async def get_souvenir(souvenir_id: int, db: AsyncSession = Depends(get_db)):
    return await crud.get_souvenir_detail(db, souvenir_id)

@router.patch("/{souvenir_id}", dependencies=[Depends(require_admin)])
async def update_souvenir(souvenir_id: int, payload: SouvenirPatch, db: AsyncSession = Depends(get_db)):
    patch = payload.model_dump(mode="json", exclude_unset=True)
    await crud.update_souvenir(db, souvenir_id, patch)
    return await crud.get_souvenir_detail(db, souvenir_id)

@router.patch("/{souvenir_id}/status", dependencies=[Depends(require_admin)])
async def update_status(souvenir_id: int, payload: StatusIn, db: AsyncSession = Depends(get_db)):
    if not await crud.update_souvenir_statuses(db, [souvenir_id], payload.status.value):
        raise NotFound("Souvenir not found")
    return await crud.get_souvenir_detail(db, souvenir_id)

@router.delete("/{souvenir_id}", dependencies=[Depends(require_admin)])
async def remove_souvenir(souvenir_id: int, db: AsyncSession = Depends(get_db)):
    await crud.delete_souvenirs(db, [souvenir_id])
    return {"ok": True}
