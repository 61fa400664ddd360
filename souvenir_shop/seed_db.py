# souvenir_shop/seed_db.py
# usage: python -m souvenir_shop.seed_db
import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select

from souvenir_shop import crud
from souvenir_shop.db import AsyncSessionLocal, create_tables, engine
from souvenir_shop.models import Souvenir, utcnow

logger = logging.getLogger("souvenir_shop.seed")

DATA_DIR = Path(__file__).resolve().parent / "data"
SEED_FILE = DATA_DIR / "souvenirs.json"

async def seed():
    await create_tables()

    with open(SEED_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)

    added = 0
    async with AsyncSessionLocal() as session:
        for name in data.get("categories", []):
            await crud.create_category(session, name)

        existing = set((await session.execute(select(Souvenir.name))).scalars().all())
        now = utcnow()
        for p in data.get("souvenirs", []):
            if p["name"] in existing:
                continue
            session.add(Souvenir(
                name=p["name"],
                description=p.get("description", ""),
                price=p["price"],
                image=p.get("image"),
                category=p["category"],
                status=p.get("status", "AVAILABLE"),
                stock=p.get("stock", 0),
                created_at=now,
                updated_at=now,
            ))
            added += 1
        await session.commit()

    await engine.dispose()
    logger.info("[SEED] seeded %d souvenirs", added)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
