# souvenir_shop/reviews.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_approved_user
from .models import User
from .serializers import review_out
from . import crud

router = APIRouter(prefix="/souvenirs/{souvenir_id}/reviews", tags=["reviews"])

class ReviewIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = ""

@router.get("")
async def list_reviews(souvenir_id: int, db: AsyncSession = Depends(get_db)):
    return [review_out(r) for r in await crud.list_reviews(db, souvenir_id)]

@router.post("")
async def add_review(
    souvenir_id: int,
    payload: ReviewIn,
    user: User = Depends(get_approved_user),
    db: AsyncSession = Depends(get_db),
):
    review = await crud.add_review(db, user, souvenir_id, payload.rating, payload.comment)
    return review_out(review)
