# souvenir_shop/crud.py
import logging
from collections import Counter
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from . import events, storage
from .errors import AuthorizationFailed, Conflict, NotFound, ValidationFailed
from .models import (
    UNCATEGORIZED,
    CartItem,
    Category,
    Message,
    Notification,
    Order,
    OrderStatus,
    Review,
    Session,
    Souvenir,
    StoredFile,
    User,
    UserRole,
    UserStatus,
    WishlistItem,
    as_utc,
    utcnow,
)
from .security import hash_password, new_session_token, verify_password
from .serializers import (
    cart_item_out,
    order_out,
    souvenir_out,
    wishlist_item_out,
)

logger = logging.getLogger("souvenir_shop.crud")


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailed(f"Invalid amount: {value!r}")


# ---------- notifications fan-out ----------
async def _user_ids_with_role(db: AsyncSession, role: UserRole) -> List[str]:
    r = await db.execute(select(User.user_id).where(User.role == role.value))
    return list(r.scalars().all())

def _notify(db: AsyncSession, user_ids: Iterable[str], message: str) -> int:
    """Queue one unread notification per user; caller commits."""
    now = utcnow()
    n = 0
    for uid in user_ids:
        db.add(Notification(user_id=uid, message=message, read=False, created_at=now))
        n += 1
    return n

async def _notify_admins(db: AsyncSession, message: str) -> int:
    return _notify(db, await _user_ids_with_role(db, UserRole.ADMIN), message)


# ---------- stored files ----------
async def record_upload(db: AsyncSession, storage_id: str, owner_id: str) -> StoredFile:
    f = StoredFile(storage_id=storage_id, owner_id=owner_id, created_at=utcnow())
    db.add(f)
    await db.commit()
    return f

async def _require_own_upload(db: AsyncSession, storage_id: str, user_id: str):
    r = await db.execute(select(StoredFile.owner_id).where(StoredFile.storage_id == storage_id))
    if r.scalar_one_or_none() != user_id:
        raise AuthorizationFailed("You can only use images you uploaded.")

async def _unreferenced(db: AsyncSession, storage_ids: Iterable[Optional[str]]) -> List[str]:
    """Storage ids no souvenir or profile points at any more; drops their upload rows.

    Caller has flushed its own changes, commits, then deletes the files.
    """
    orphans = []
    for sid in {s for s in storage_ids if s}:
        souvenirs = (await db.execute(
            select(func.count(Souvenir.id)).where(Souvenir.image == sid)
        )).scalar_one()
        profiles = (await db.execute(
            select(func.count(User.user_id)).where(User.profile_image == sid)
        )).scalar_one()
        if souvenirs or profiles:
            logger.info("[CRUD] keeping %s, still referenced", sid)
            continue
        await db.execute(delete(StoredFile).where(StoredFile.storage_id == sid))
        orphans.append(sid)
    return orphans

async def _delete_files(storage_ids: Iterable[str]):
    for sid in storage_ids:
        await storage.delete(sid)


# ---------- users & sessions ----------
async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email)
    r = await db.execute(q)
    return r.scalar_one_or_none()

async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    q = select(User).where(User.user_id == user_id)
    r = await db.execute(q)
    return r.scalar_one_or_none()

async def list_users(db: AsyncSession) -> List[User]:
    r = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(r.scalars().all())

async def create_session(db: AsyncSession, user_id: str) -> str:
    token, expires_at = new_session_token(user_id)
    db.add(Session(user_id=user_id, token=token, expires_at=expires_at))
    await db.commit()
    return token

async def get_session_user(db: AsyncSession, token: str) -> Optional[User]:
    q = (
        select(Session, User)
        .join(User, User.user_id == Session.user_id)
        .where(Session.token == token)
    )
    row = (await db.execute(q)).first()
    if not row:
        return None
    sess, user = row
    if as_utc(sess.expires_at) <= utcnow():
        logger.info("[AUTH] expired session for user %s", user.user_id)
        return None
    return user

async def delete_session(db: AsyncSession, token: str):
    await db.execute(delete(Session).where(Session.token == token))
    await db.commit()

async def register_user(db: AsyncSession, name: str, email: str, password: str) -> Tuple[User, Optional[str]]:
    """First registrant becomes the approved admin; everyone else waits for approval.

    Returns the user and, for accounts that start approved, a session token.
    """
    if await get_user_by_email(db, email):
        raise Conflict("Email already registered")

    user_count = (await db.execute(select(func.count(User.user_id)))).scalar_one()
    is_first_user = user_count == 0

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=(UserRole.ADMIN if is_first_user else UserRole.CUSTOMER).value,
        status=(UserStatus.APPROVED if is_first_user else UserStatus.PENDING).value,
        created_at=utcnow(),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Email already registered")

    if not is_first_user:
        await _notify_admins(db, f"New user registration: {name} ({email})")
    await db.commit()
    logger.info("[CRUD] registered user %s role=%s status=%s", user.user_id, user.role, user.status)
    await events.publish("users", "create", [user.user_id])

    token = None
    if user.status == UserStatus.APPROVED.value:
        token = await create_session(db, user.user_id)
    return user, token

async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[Tuple[User, str]]:
    """Returns (user, token) on a match and None otherwise; never raises for bad credentials."""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    token = await create_session(db, user.user_id)
    return user, token

async def update_profile(
    db: AsyncSession,
    user_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    current_password: Optional[str] = None,
    profile_image: Optional[str] = None,
) -> User:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")

    if email or password:
        if not current_password:
            raise ValidationFailed("Current password is required to update sensitive information.")
        if not verify_password(current_password, user.password_hash):
            raise AuthorizationFailed("Incorrect current password.")

    if email and email != user.email:
        other = await get_user_by_email(db, email)
        if other and other.user_id != user.user_id:
            raise Conflict("Email already registered")
        user.email = email
    if name:
        user.name = name
    if password:
        user.password_hash = hash_password(password)
    orphans = []
    if profile_image and profile_image != user.profile_image:
        await _require_own_upload(db, profile_image, user.user_id)
        old_image = user.profile_image
        user.profile_image = profile_image
        await db.flush()
        orphans = await _unreferenced(db, [old_image])

    await db.commit()
    await _delete_files(orphans)
    await events.publish("users", "update", [user.user_id])
    return user

async def update_user_status(db: AsyncSession, user_id: str, status: UserStatus) -> User:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    user.status = status.value
    _notify(db, [user_id], f"Your account status has been updated to: {status.value}")
    await db.commit()
    await events.publish("users", "update", [user_id])
    await events.publish("notifications", "create", [user_id])
    return user

async def update_user_role(db: AsyncSession, user_id: str, role: UserRole) -> User:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    user.role = role.value
    _notify(db, [user_id], f"Your account role has been updated to: {role.value}")
    await db.commit()
    await events.publish("users", "update", [user_id])
    await events.publish("notifications", "create", [user_id])
    return user

async def delete_user(db: AsyncSession, user_id: str):
    user = await get_user_by_id(db, user_id)
    if not user:
        return
    for model in (CartItem, WishlistItem, Notification, Session):
        await db.execute(delete(model).where(model.user_id == user_id))
    await db.delete(user)
    await db.flush()
    orphans = await _unreferenced(db, [user.profile_image])
    await db.commit()
    await _delete_files(orphans)
    logger.info("[CRUD] deleted user %s and owned rows", user_id)
    await events.publish("users", "delete", [user_id])


# ---------- souvenirs ----------
async def _rating_stats(db: AsyncSession, souvenir_ids: Optional[List[int]] = None) -> Dict[int, Tuple[float, int]]:
    q = select(Review.souvenir_id, func.avg(Review.rating), func.count(Review.id)).group_by(Review.souvenir_id)
    if souvenir_ids is not None:
        q = q.where(Review.souvenir_id.in_(souvenir_ids))
    r = await db.execute(q)
    return {sid: (float(avg or 0), int(cnt)) for sid, avg, cnt in r.all()}

async def get_souvenir(db: AsyncSession, souvenir_id: int) -> Optional[Souvenir]:
    r = await db.execute(select(Souvenir).where(Souvenir.id == souvenir_id))
    return r.scalar_one_or_none()

async def _souvenirs_by_id(db: AsyncSession, ids: Iterable[int]) -> Dict[int, Souvenir]:
    ids = {i for i in ids if i is not None}
    if not ids:
        return {}
    r = await db.execute(select(Souvenir).where(Souvenir.id.in_(ids)))
    return {s.id: s for s in r.scalars().all()}

async def list_souvenirs(
    db: AsyncSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict]:
    q = select(Souvenir)
    if search:
        term = search.strip().lower()
        q = q.where(or_(
            func.lower(Souvenir.name).contains(term, autoescape=True),
            func.lower(Souvenir.description).contains(term, autoescape=True),
        ))
    if category:
        q = q.where(Souvenir.category == category)
    if status:
        q = q.where(Souvenir.status == status)
    q = q.order_by(Souvenir.created_at.desc(), Souvenir.id.desc())
    rows = (await db.execute(q)).scalars().all()
    stats = await _rating_stats(db, [s.id for s in rows])
    return [souvenir_out(s, *stats.get(s.id, (0.0, 0))) for s in rows]

async def get_souvenir_detail(db: AsyncSession, souvenir_id: int) -> Dict:
    s = await get_souvenir(db, souvenir_id)
    if not s:
        raise NotFound("Souvenir not found")
    stats = await _rating_stats(db, [s.id])
    return souvenir_out(s, *stats.get(s.id, (0.0, 0)))

async def create_souvenir(db: AsyncSession, fields: Dict) -> Souvenir:
    now = utcnow()
    s = Souvenir(
        name=fields["name"],
        description=fields.get("description") or "",
        price=_to_decimal(fields["price"]),
        image=fields.get("image"),
        category=fields["category"],
        status=fields["status"],
        stock=fields.get("stock", 0),
        created_at=now,
        updated_at=now,
    )
    db.add(s)
    await db.flush()
    notified = _notify(
        db,
        await _user_ids_with_role(db, UserRole.CUSTOMER),
        f'New arrival: "{s.name}" is now in the shop!',
    )
    await db.commit()
    logger.info("[CRUD] created souvenir %s, notified %d customers", s.id, notified)
    await events.publish("souvenirs", "create", [s.id])
    return s

async def update_souvenir(db: AsyncSession, souvenir_id: int, patch: Dict) -> Souvenir:
    s = await get_souvenir(db, souvenir_id)
    if not s:
        raise NotFound("Souvenir not found")
    if "price" in patch:
        patch["price"] = _to_decimal(patch["price"])
    old_image = s.image
    for key, value in patch.items():
        setattr(s, key, value)
    s.updated_at = utcnow()
    orphans = []
    if "image" in patch and patch["image"] != old_image:
        await db.flush()
        orphans = await _unreferenced(db, [old_image])
    await db.commit()
    await _delete_files(orphans)
    await events.publish("souvenirs", "update", [s.id])
    return s

async def update_souvenir_statuses(db: AsyncSession, ids: List[int], status: str) -> int:
    if not ids:
        return 0
    r = await db.execute(
        update(Souvenir)
        .where(Souvenir.id.in_(ids))
        .values(status=status, updated_at=utcnow())
    )
    await db.commit()
    await events.publish("souvenirs", "update", ids)
    return r.rowcount or 0

async def delete_souvenirs(db: AsyncSession, ids: List[int]) -> int:
    existing = await _souvenirs_by_id(db, ids)
    for s in existing.values():
        await db.delete(s)
    await db.flush()
    orphans = await _unreferenced(db, [s.image for s in existing.values()])
    await db.commit()
    await _delete_files(orphans)
    if existing:
        await events.publish("souvenirs", "delete", list(existing))
    return len(existing)


# ---------- categories ----------
async def list_categories(db: AsyncSession) -> List[Category]:
    r = await db.execute(select(Category).order_by(Category.name))
    return list(r.scalars().all())

async def _category_by_name_ci(db: AsyncSession, name: str) -> Optional[Category]:
    q = select(Category).where(func.lower(Category.name) == name.lower()).order_by(Category.id).limit(1)
    r = await db.execute(q)
    return r.scalar_one_or_none()

async def create_category(db: AsyncSession, name: str) -> Tuple[Category, bool]:
    """Idempotent: an existing case-insensitive match is returned instead of a new row."""
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Category name is required")
    existing = await _category_by_name_ci(db, name)
    if existing:
        return existing, False
    c = Category(name=name)
    db.add(c)
    await db.commit()
    await events.publish("categories", "create", [c.id])
    return c, True

async def delete_category(db: AsyncSession, category_id: int) -> int:
    """Deletes a category, moving its products to the Uncategorized sentinel first.

    Returns how many products were reassigned.
    """
    r = await db.execute(select(Category).where(Category.id == category_id))
    category = r.scalar_one_or_none()
    if not category:
        return 0

    related = (await db.execute(
        select(Souvenir).where(Souvenir.category == category.name)
    )).scalars().all()

    if related:
        if category.name.lower() == UNCATEGORIZED.lower():
            raise Conflict(f"Cannot delete {category.name} while products still use it")
        sentinel = await _category_by_name_ci(db, UNCATEGORIZED)
        if not sentinel:
            sentinel = Category(name=UNCATEGORIZED)
            db.add(sentinel)
        now = utcnow()
        for s in related:
            s.category = sentinel.name
            s.updated_at = now

    await db.delete(category)
    await db.commit()
    logger.info("[CRUD] deleted category %r, reassigned %d products", category.name, len(related))
    await events.publish("categories", "delete", [category_id])
    if related:
        await events.publish("souvenirs", "update", [s.id for s in related])
    return len(related)


# ---------- cart ----------
async def list_cart(db: AsyncSession, user_id: str) -> List[Dict]:
    items = (await db.execute(
        select(CartItem).where(CartItem.user_id == user_id).order_by(CartItem.id)
    )).scalars().all()
    souvenirs = await _souvenirs_by_id(db, [i.souvenir_id for i in items])
    return [cart_item_out(i, souvenirs.get(i.souvenir_id)) for i in items]

async def _cart_line(db: AsyncSession, user_id: str, souvenir_id: int) -> Optional[CartItem]:
    q = select(CartItem).where(CartItem.user_id == user_id, CartItem.souvenir_id == souvenir_id)
    return (await db.execute(q)).scalar_one_or_none()

async def add_to_cart(db: AsyncSession, user_id: str, souvenir_id: int, quantity: int = 1) -> CartItem:
    if not await get_souvenir(db, souvenir_id):
        raise NotFound("Souvenir not found")
    existing = await _cart_line(db, user_id, souvenir_id)
    if existing:
        existing.quantity = existing.quantity + quantity
        item = existing
    else:
        item = CartItem(user_id=user_id, souvenir_id=souvenir_id, quantity=quantity)
        db.add(item)
    try:
        await db.commit()
    except IntegrityError:
        # another request inserted the same line first
        await db.rollback()
        item = await _cart_line(db, user_id, souvenir_id)
        item.quantity = item.quantity + quantity
        await db.commit()
        logger.info("[CRUD] add_to_cart merged into concurrent line %s", item.id)
    await events.publish("cart_items", "update", [user_id])
    return item

async def update_cart_quantity(db: AsyncSession, user_id: str, item_id: int, quantity: int) -> CartItem:
    q = select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
    item = (await db.execute(q)).scalar_one_or_none()
    if not item:
        raise NotFound("Cart item not found")
    item.quantity = quantity
    await db.commit()
    await events.publish("cart_items", "update", [user_id])
    return item

async def remove_cart_item(db: AsyncSession, user_id: str, item_id: int):
    await db.execute(delete(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id))
    await db.commit()
    await events.publish("cart_items", "delete", [user_id])


# ---------- wishlist ----------
async def list_wishlist(db: AsyncSession, user_id: str) -> List[Dict]:
    items = (await db.execute(
        select(WishlistItem).where(WishlistItem.user_id == user_id).order_by(WishlistItem.id)
    )).scalars().all()
    souvenirs = await _souvenirs_by_id(db, [i.souvenir_id for i in items])
    return [wishlist_item_out(i, souvenirs.get(i.souvenir_id)) for i in items]

async def toggle_wishlist(db: AsyncSession, user_id: str, souvenir_id: int) -> bool:
    """Returns True when the item was added, False when it was removed."""
    q = select(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.souvenir_id == souvenir_id)
    existing = (await db.execute(q)).scalar_one_or_none()
    if existing:
        await db.delete(existing)
        added = False
    else:
        if not await get_souvenir(db, souvenir_id):
            raise NotFound("Souvenir not found")
        db.add(WishlistItem(user_id=user_id, souvenir_id=souvenir_id))
        added = True
    await db.commit()
    await events.publish("wishlist_items", "update", [user_id])
    return added

async def remove_wishlist_item(db: AsyncSession, user_id: str, item_id: int):
    await db.execute(delete(WishlistItem).where(WishlistItem.id == item_id, WishlistItem.user_id == user_id))
    await db.commit()
    await events.publish("wishlist_items", "delete", [user_id])


# ---------- orders ----------
async def create_order(db: AsyncSession, user_id: str, items: List[Dict], total_price: float) -> Order:
    if not items:
        raise ValidationFailed("An order needs at least one item")
    total = _to_decimal(total_price)
    order = Order(
        user_id=user_id,
        items=[
            {
                "souvenir_id": int(i["souvenir_id"]),
                "quantity": int(i["quantity"]),
                "price_at_time": float(_to_decimal(i["price_at_time"])),
            }
            for i in items
        ],
        total_price=total,
        status=OrderStatus.PENDING_WHATSAPP.value,
        created_at=utcnow(),
    )
    db.add(order)
    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await _notify_admins(db, f"New order placed! Total: ${total:.2f}")
    await db.commit()
    logger.info("[CRUD] create_order created order %s for user %s", order.order_id, user_id)
    await events.publish("orders", "create", [order.order_id])
    await events.publish("cart_items", "delete", [user_id])
    return order

async def checkout_cart(db: AsyncSession, user_id: str) -> Tuple[Order, List[Dict]]:
    """Turns the caller's cart into an order at current prices.

    Returns the order and the priced lines (with names) used to build it.
    Lines whose product no longer exists are dropped.
    """
    cart = await list_cart(db, user_id)
    lines = [
        {
            "souvenir_id": c["souvenir_id"],
            "name": c["souvenir"]["name"],
            "quantity": c["quantity"],
            "price_at_time": c["souvenir"]["price"],
        }
        for c in cart
        if c["souvenir"] is not None
    ]
    if not lines:
        raise ValidationFailed("Your cart is empty")
    total = sum(_to_decimal(l["price_at_time"]) * l["quantity"] for l in lines)
    order = await create_order(db, user_id, lines, total)
    return order, lines

async def get_order(db: AsyncSession, order_id: str) -> Optional[Order]:
    r = await db.execute(select(Order).where(Order.order_id == order_id))
    return r.scalar_one_or_none()

async def get_order_detail(db: AsyncSession, order_id: str) -> Dict:
    o = await get_order(db, order_id)
    if not o:
        raise NotFound("Order not found")
    souvenirs = await _souvenirs_by_id(db, [line.get("souvenir_id") for line in (o.items or [])])
    return order_out(o, souvenirs)

async def list_orders(db: AsyncSession, user_id: Optional[str] = None) -> List[Dict]:
    """Newest first. Without ``user_id`` lists every order and resolves customer names."""
    q = select(Order).order_by(Order.created_at.desc())
    if user_id is not None:
        q = q.where(Order.user_id == user_id)
    orders = (await db.execute(q)).scalars().all()
    souvenirs = await _souvenirs_by_id(
        db, [line.get("souvenir_id") for o in orders for line in (o.items or [])]
    )
    if user_id is not None:
        return [order_out(o, souvenirs) for o in orders]

    user_ids = {o.user_id for o in orders}
    names = {}
    if user_ids:
        r = await db.execute(select(User.user_id, User.name).where(User.user_id.in_(user_ids)))
        names = dict(r.all())
    return [order_out(o, souvenirs, names.get(o.user_id, "Unknown User")) for o in orders]

async def update_order_statuses(db: AsyncSession, ids: List[str], status: OrderStatus) -> int:
    if not ids:
        return 0
    r = await db.execute(update(Order).where(Order.order_id.in_(ids)).values(status=status.value))
    await db.commit()
    await events.publish("orders", "update", ids)
    return r.rowcount or 0

async def delete_orders(db: AsyncSession, ids: List[str]) -> int:
    if not ids:
        return 0
    r = await db.execute(delete(Order).where(Order.order_id.in_(ids)))
    await db.commit()
    await events.publish("orders", "delete", ids)
    return r.rowcount or 0


# ---------- reviews ----------
async def list_reviews(db: AsyncSession, souvenir_id: int) -> List[Review]:
    q = (
        select(Review)
        .where(Review.souvenir_id == souvenir_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return list((await db.execute(q)).scalars().all())

async def add_review(db: AsyncSession, user: User, souvenir_id: int, rating: int, comment: str) -> Review:
    souvenir = await get_souvenir(db, souvenir_id)
    if not souvenir:
        raise NotFound("Souvenir not found")
    review = Review(
        user_id=user.user_id,
        user_name=user.name,
        souvenir_id=souvenir_id,
        rating=rating,
        comment=comment,
        created_at=utcnow(),
    )
    db.add(review)
    await _notify_admins(db, f'New {rating}-star review for "{souvenir.name}" from {user.name}.')
    await db.commit()
    await events.publish("reviews", "create", [souvenir_id])
    return review


# ---------- notifications ----------
async def list_notifications(db: AsyncSession, user_id: str) -> List[Notification]:
    q = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list((await db.execute(q)).scalars().all())

async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    r = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    await events.publish("notifications", "update", [user_id])
    return r.rowcount or 0

async def clear_notifications(db: AsyncSession, user_id: str) -> int:
    r = await db.execute(delete(Notification).where(Notification.user_id == user_id))
    await db.commit()
    await events.publish("notifications", "delete", [user_id])
    return r.rowcount or 0

async def delete_notification(db: AsyncSession, user_id: str, notification_id: int):
    await db.execute(
        delete(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    await db.commit()
    await events.publish("notifications", "delete", [user_id])


# ---------- contact messages ----------
async def send_message(
    db: AsyncSession,
    name: str,
    email: str,
    message: str,
    subject: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Message:
    m = Message(
        name=name,
        email=email,
        subject=subject,
        message=message,
        user_id=user_id,
        replied=False,
        created_at=utcnow(),
    )
    db.add(m)
    await _notify_admins(db, f'New message from {name}: "{subject or "No subject"}"')
    await db.commit()
    await events.publish("messages", "create", [m.id])
    return m

async def list_messages(db: AsyncSession) -> List[Message]:
    q = select(Message).order_by(Message.created_at.desc(), Message.id.desc())
    return list((await db.execute(q)).scalars().all())

async def reply_message(db: AsyncSession, message_id: int, text: str) -> Message:
    r = await db.execute(select(Message).where(Message.id == message_id))
    m = r.scalar_one_or_none()
    if not m:
        raise NotFound("Message not found")
    m.replied = True
    m.reply_text = text
    if m.user_id and await get_user_by_id(db, m.user_id):
        _notify(db, [m.user_id], f'Boutique Support replied to your inquiry: "{text[:50]}..."')
    await db.commit()
    await events.publish("messages", "update", [m.id])
    return m

async def delete_message(db: AsyncSession, message_id: int):
    await db.execute(delete(Message).where(Message.id == message_id))
    await db.commit()
    await events.publish("messages", "delete", [message_id])


# ---------- admin analytics ----------
async def dashboard_analytics(db: AsyncSession, days: int = 30) -> Dict:
    orders = (await db.execute(select(Order))).scalars().all()
    souvenirs = (await db.execute(select(Souvenir))).scalars().all()
    approved_users = (await db.execute(
        select(func.count(User.user_id)).where(User.status == UserStatus.APPROVED.value)
    )).scalar_one()

    successful = [o for o in orders if o.status != OrderStatus.CANCELLED.value]
    total_revenue = sum((Decimal(o.total_price or 0) for o in successful), Decimal(0))
    inventory_value = sum((Decimal(s.price or 0) * (s.stock or 0) for s in souvenirs), Decimal(0))

    today = utcnow().date()
    timeline = {today - timedelta(days=i): Decimal(0) for i in range(days - 1, -1, -1)}
    for o in successful:
        day = as_utc(o.created_at).date()
        if day in timeline:
            timeline[day] += Decimal(o.total_price or 0)

    status_counts = Counter(o.status for o in orders)
    category_counts = Counter(s.category for s in souvenirs)

    return {
        "total_revenue": float(total_revenue),
        "total_orders": len(orders),
        "approved_users": int(approved_users),
        "inventory_value": float(inventory_value),
        "revenue_timeline": [
            {"date": day.isoformat(), "amount": float(amount)} for day, amount in timeline.items()
        ],
        "order_status": {s.value: status_counts.get(s.value, 0) for s in OrderStatus},
        "categories": [{"name": name, "count": count} for name, count in sorted(category_counts.items())],
    }
