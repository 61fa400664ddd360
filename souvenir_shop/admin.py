# souvenir_shop/admin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import require_admin
from . import crud

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.get("/analytics")
async def analytics(days: int = Query(30, ge=1, le=365), db: AsyncSession = Depends(get_db)):
    """Dashboard KPIs: revenue, order mix, inventory value and a daily revenue timeline."""
    return await crud.dashboard_analytics(db, days=days)
