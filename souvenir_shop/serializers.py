# souvenir_shop/serializers.py
from datetime import datetime
from typing import Any, Dict, Optional

from . import storage
from .models import (
    CartItem,
    Category,
    Message,
    Notification,
    Order,
    Review,
    Souvenir,
    User,
    WishlistItem,
    as_utc,
)


def _ts(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None

def _money(value) -> float:
    return round(float(value or 0), 2)


def user_out(u: User) -> Dict[str, Any]:
    return {
        "user_id": u.user_id,
        "name": u.name,
        "email": u.email,
        "role": u.role,
        "status": u.status,
        "created_at": _ts(u.created_at),
        "profile_image": u.profile_image,
        "profile_image_url": storage.get_url(u.profile_image),
    }

def souvenir_out(s: Souvenir, rating: float = 0.0, review_count: int = 0) -> Dict[str, Any]:
    return {
        "id": s.id,
        "name": s.name,
        "description": s.description,
        "price": _money(s.price),
        "image": storage.get_url(s.image),
        "storage_id": s.image,
        "category": s.category,
        "status": s.status,
        "stock": s.stock,
        "rating": round(float(rating or 0), 2),
        "review_count": int(review_count or 0),
        "created_at": _ts(s.created_at),
        "updated_at": _ts(s.updated_at),
    }

def category_out(c: Category) -> Dict[str, Any]:
    return {"id": c.id, "name": c.name}

def cart_item_out(item: CartItem, souvenir: Optional[Souvenir]) -> Dict[str, Any]:
    return {
        "id": item.id,
        "user_id": item.user_id,
        "souvenir_id": item.souvenir_id,
        "quantity": item.quantity,
        "souvenir": souvenir_out(souvenir) if souvenir else None,
    }

def wishlist_item_out(item: WishlistItem, souvenir: Optional[Souvenir]) -> Dict[str, Any]:
    return {
        "id": item.id,
        "user_id": item.user_id,
        "souvenir_id": item.souvenir_id,
        "souvenir": souvenir_out(souvenir) if souvenir else None,
    }

def order_out(o: Order, souvenirs: Dict[int, Souvenir], user_name: Optional[str] = None) -> Dict[str, Any]:
    items = []
    for line in o.items or []:
        s = souvenirs.get(line.get("souvenir_id"))
        items.append({
            "souvenir_id": line.get("souvenir_id"),
            "quantity": line.get("quantity"),
            "price_at_time": _money(line.get("price_at_time")),
            "souvenir_name": s.name if s else "Deleted Item",
            "souvenir_image": storage.get_url(s.image) if s else None,
        })
    out = {
        "order_id": o.order_id,
        "user_id": o.user_id,
        "items": items,
        "total_price": _money(o.total_price),
        "status": o.status,
        "created_at": _ts(o.created_at),
    }
    if user_name is not None:
        out["user_name"] = user_name
    return out

def review_out(r: Review) -> Dict[str, Any]:
    return {
        "id": r.id,
        "user_id": r.user_id,
        "user_name": r.user_name,
        "souvenir_id": r.souvenir_id,
        "rating": r.rating,
        "comment": r.comment,
        "created_at": _ts(r.created_at),
    }

def notification_out(n: Notification) -> Dict[str, Any]:
    return {
        "id": n.id,
        "user_id": n.user_id,
        "message": n.message,
        "read": n.read,
        "created_at": _ts(n.created_at),
    }

def message_out(m: Message) -> Dict[str, Any]:
    return {
        "id": m.id,
        "name": m.name,
        "email": m.email,
        "subject": m.subject,
        "message": m.message,
        "user_id": m.user_id,
        "replied": m.replied,
        "reply_text": m.reply_text,
        "created_at": _ts(m.created_at),
    }
