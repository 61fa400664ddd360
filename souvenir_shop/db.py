# souvenir_shop/db.py
import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from collections.abc import AsyncGenerator

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./souvenir_shop.db")

# Ensure async driver
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
elif DATABASE_URL.startswith("sqlite://"):
    DATABASE_URL = DATABASE_URL.replace("sqlite://", "sqlite+aiosqlite://", 1)

def strip_query_params(url: str, drop_keys=("sslmode", "channel_binding")) -> str:
    # asyncpg rejects libpq-only params; sqlite paths must keep their slashes
    u = make_url(url).difference_update_query(drop_keys)
    return u.render_as_string(hide_password=False)

CLEAN_DATABASE_URL = strip_query_params(DATABASE_URL)

def _engine_kwargs(url: str) -> dict:
    # aiosqlite connections are cheap and must not be shared across event loops
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
    }

engine = create_async_engine(
    CLEAN_DATABASE_URL,
    echo=False,
    future=True,
    **_engine_kwargs(CLEAN_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)

class Base(DeclarativeBase):
    pass

async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

# FastAPI dependency
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
