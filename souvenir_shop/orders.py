# souvenir_shop/orders.py
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .checkout import build_whatsapp_message, build_whatsapp_url
from .db import get_db
from .deps import get_approved_user, require_admin
from .errors import NotFound
from .models import OrderStatus, User
from . import crud

router = APIRouter(prefix="/orders", tags=["orders"])

class OrderItemIn(BaseModel):
    souvenir_id: int
    quantity: int = Field(ge=1)
    price_at_time: float = Field(ge=0)

class OrderIn(BaseModel):
    items: List[OrderItemIn] = Field(min_length=1)
    total_price: float = Field(ge=0)

class StatusIn(BaseModel):
    status: OrderStatus

class BulkStatusIn(BaseModel):
    ids: List[str]
    status: OrderStatus

class BulkIdsIn(BaseModel):
    ids: List[str]


@router.post("")
async def create_order(payload: OrderIn, user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    order = await crud.create_order(
        db, user.user_id, [i.model_dump() for i in payload.items], payload.total_price
    )
    return await crud.get_order_detail(db, order.order_id)

@router.post("/checkout")
async def checkout(user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    order, lines = await crud.checkout_cart(db, user.user_id)
    message = build_whatsapp_message(user.name, lines, order.total_price, order.order_id)
    return {
        "order": await crud.get_order_detail(db, order.order_id),
        "message": message,
        "whatsapp_url": build_whatsapp_url(message),
    }

@router.get("/me")
async def my_orders(user: User = Depends(get_approved_user), db: AsyncSession = Depends(get_db)):
    return await crud.list_orders(db, user_id=user.user_id)

@router.get("", dependencies=[Depends(require_admin)])
async def all_orders(db: AsyncSession = Depends(get_db)):
    return await crud.list_orders(db)

@router.patch("/bulk/status", dependencies=[Depends(require_admin)])
async def update_statuses(payload: BulkStatusIn, db: AsyncSession = Depends(get_db)):
    return {"updated": await crud.update_order_statuses(db, payload.ids, payload.status)}

@router.post("/bulk/delete", dependencies=[Depends(require_admin)])
async def remove_many(payload: BulkIdsIn, db: AsyncSession = Depends(get_db)):
    return {"deleted": await crud.delete_orders(db, payload.ids)}

@router.patch("/{order_id}/status", dependencies=[Depends(require_admin)])
async def update_status(order_id: str, payload: StatusIn, db: AsyncSession = Depends(get_db)):
    if not await crud.update_order_statuses(db, [order_id], payload.status):
        raise NotFound("Order not found")
    return await crud.get_order_detail(db, order_id)

@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
async def remove_order(order_id: str, db: AsyncSession = Depends(get_db)):
    await crud.delete_orders(db, [order_id])
    return {"ok": True}
