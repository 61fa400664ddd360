# souvenir_shop/messages.py
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_optional_user, require_admin
from .models import User
from .serializers import message_out
from . import crud

router = APIRouter(prefix="/messages", tags=["messages"])

class MessageIn(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    subject: Optional[str] = None
    message: str = Field(min_length=1)

class ReplyIn(BaseModel):
    text: str = Field(min_length=1)

@router.post("")
async def send_message(
    payload: MessageIn,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    m = await crud.send_message(
        db,
        name=payload.name,
        email=payload.email,
        subject=payload.subject or None,
        message=payload.message,
        user_id=user.user_id if user else None,
    )
    return message_out(m)

@router.get("", dependencies=[Depends(require_admin)])
async def list_messages(db: AsyncSession = Depends(get_db)):
    return [message_out(m) for m in await crud.list_messages(db)]

@router.post("/{message_id}/reply", dependencies=[Depends(require_admin)])
async def reply(message_id: int, payload: ReplyIn, db: AsyncSession = Depends(get_db)):
    return message_out(await crud.reply_message(db, message_id, payload.text))

@router.delete("/{message_id}", dependencies=[Depends(require_admin)])
async def remove_message(message_id: int, db: AsyncSession = Depends(get_db)):
    await crud.delete_message(db, message_id)
    return {"ok": True}
