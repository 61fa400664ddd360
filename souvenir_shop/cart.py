# souvenir_shop/cart.py
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_approved_user
from .models import User
from . import crud

router = APIRouter(prefix="/cart", tags=["cart"])

class CartAddIn(BaseModel):
    souvenir_id: int
    quantity: int = Field(default=1, ge=1)

class QuantityIn(BaseModel):
    quantity: int = Field(ge=1)


def summarize(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    subtotal = sum(
        float(i["souvenir"]["price"]) * int(i["quantity"] or 1)
        for i in items
        if i["souvenir"] is not None
    )
    return {
        "items": items,
        "count": sum(int(i["quantity"] or 0) for i in items),
        "subtotal": round(subtotal, 2),
    }

async def _summary(db: AsyncSession, user_id: str) -> Dict[str, Any]:
    return summarize(await crud.list_cart(db, user_id))


@router.get("")
async def cart_summary(user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    return await _summary(db, user.user_id)

@router.post("/add")
async def cart_add(
    payload: CartAddIn,
    user: User = Depends(get_approved_user),
    db: AsyncSession = Depends(get_db),
):
    await crud.add_to_cart(db, user.user_id, payload.souvenir_id, payload.quantity)
    return await _summary(db, user.user_id)

@router.patch("/item/{item_id}")
async def cart_update_quantity(
    item_id: int,
    payload: QuantityIn,
    user: User = Depends(get_approved_user),
    db: AsyncSession = Depends(get_db),
):
    await crud.update_cart_quantity(db, user.user_id, item_id, payload.quantity)
    return await _summary(db, user.user_id)

@router.delete("/item/{item_id}")
async def cart_remove_item(
    item_id: int,
    user: User = Depends(get_approved_user),
    db: AsyncSession = Depends(get_db),
):
    await crud.remove_cart_item(db, user.user_id, item_id)
    return await _summary(db, user.user_id)
