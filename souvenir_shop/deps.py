# souvenir_shop/deps.py
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .db import get_db
from .errors import AuthorizationFailed, InvalidCredential
from .models import User, UserRole, UserStatus
from .security import decode_token

security = HTTPBearer(auto_error=False)


async def _resolve(token: str, db: AsyncSession) -> Optional[User]:
    decode_token(token, "session")
    return await crud.get_session_user(db, token)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise InvalidCredential("Missing auth token")
    user = await _resolve(credentials.credentials, db)
    if not user:
        raise InvalidCredential("Session expired or revoked")
    return user

async def get_optional_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    if credentials is None:
        return None
    try:
        return await _resolve(credentials.credentials, db)
    except InvalidCredential:
        return None

async def get_approved_user(user: User = Depends(get_current_user)) -> User:
    if user.status != UserStatus.APPROVED.value:
        raise AuthorizationFailed(f"Account is {user.status.lower()}")
    return user

async def require_admin(user: User = Depends(get_approved_user)) -> User:
    if user.role != UserRole.ADMIN.value:
        raise AuthorizationFailed("Admin access required")
    return user
