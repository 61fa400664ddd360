# souvenir_shop/auth.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_current_user, security
from .errors import InvalidCredential
from .models import User
from .serializers import user_out
from . import crud

logger = logging.getLogger("souvenir_shop.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

class SignupIn(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)

class LoginIn(BaseModel):
    email: EmailStr
    password: str

class ProfileIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    current_password: Optional[str] = None
    profile_image: Optional[str] = None

@router.post("/register")
async def register(payload: SignupIn, db: AsyncSession = Depends(get_db)):
    user, token = await crud.register_user(db, payload.name.strip(), payload.email, payload.password)
    return {"user": user_out(user), "token": token}

@router.post("/login")
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    match = await crud.authenticate(db, payload.email, payload.password)
    if match is None:
        logger.info("[AUTH] failed login for %s", payload.email)
        raise InvalidCredential("Invalid email or password.")
    user, token = match
    return {"user": user_out(user), "token": token}

@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_session(db, credentials.credentials)
    return {"ok": True}

@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return user_out(user)

@router.patch("/me")
async def update_me(
    payload: ProfileIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await crud.update_profile(db, user.user_id, **payload.model_dump())
    return user_out(updated)
