# souvenir_shop/models.py
import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)

from .db import Base


def gen_uuid():
    return str(uuid.uuid4())

def gen_order_id():
    return "ORD-" + uuid.uuid4().hex[:8]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"

class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class SouvenirStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    PREORDER = "PREORDER"
    SOLD = "SOLD"

class OrderStatus(str, enum.Enum):
    PENDING_WHATSAPP = "PENDING_WHATSAPP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


UNCATEGORIZED = "Uncategorized"


class User(Base):
    __tablename__ = "users"
    user_id = Column(String, primary_key=True, default=gen_uuid)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER.value, index=True)
    status = Column(String, nullable=False, default=UserStatus.PENDING.value)
    profile_image = Column(String, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

class Session(Base):
    __tablename__ = "sessions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    token = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)

class Souvenir(Base):
    __tablename__ = "souvenirs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String, nullable=True)  # storage id
    category = Column(String, index=True, nullable=False)
    status = Column(String, nullable=False, default=SouvenirStatus.AVAILABLE.value)
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, index=True, nullable=False)

class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "souvenir_id"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    souvenir_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

class WishlistItem(Base):
    __tablename__ = "wishlist_items"
    __table_args__ = (UniqueConstraint("user_id", "souvenir_id"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    souvenir_id = Column(Integer, nullable=False)

class Order(Base):
    __tablename__ = "orders"
    order_id = Column(String, primary_key=True, default=gen_order_id)
    user_id = Column(String, index=True, nullable=False)
    items = Column(JSON, nullable=False)  # [{souvenir_id, quantity, price_at_time}]
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default=OrderStatus.PENDING_WHATSAPP.value)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=False)
    user_name = Column(String, nullable=False)
    souvenir_id = Column(Integer, index=True, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

class Message(Base):
    __tablename__ = "messages"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    user_id = Column(String, index=True, nullable=True)
    replied = Column(Boolean, nullable=False, default=False)
    reply_text = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)

class StoredFile(Base):
    __tablename__ = "stored_files"
    storage_id = Column(String, primary_key=True)
    owner_id = Column(String, index=True, nullable=False)  # uploader's user_id
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
