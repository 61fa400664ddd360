# souvenir_shop/security.py
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from dotenv import load_dotenv
from jose import jwt, JWTError
from passlib.context import CryptContext

from .errors import InvalidCredential

load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change_me_long_secret")
ALGORITHM = "HS256"
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", "30"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # malformed or foreign hash
        return False


def create_access_token(data: dict, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def decode_token(token: str, purpose: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise InvalidCredential("Invalid or expired token")
    if payload.get("purpose") != purpose:
        raise InvalidCredential("Invalid token")
    return payload

def new_session_token(user_id: str) -> tuple[str, datetime]:
    """Issue a bearer token for a session row. Returns (token, expires_at)."""
    expires_delta = timedelta(days=SESSION_EXPIRE_DAYS)
    token = create_access_token(
        {"sub": user_id, "purpose": "session", "jti": secrets.token_urlsafe(24)},
        expires_delta,
    )
    return token, datetime.now(timezone.utc) + expires_delta
