# souvenir_shop/scripts/check_db.py
# usage: python -m souvenir_shop.scripts.check_db
import asyncio

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import text

from souvenir_shop.db import engine

TABLES = ("users", "souvenirs", "categories", "cart_items", "wishlist_items",
          "orders", "reviews", "notifications", "messages", "sessions",
          "stored_files")

async def main():
    async with engine.begin() as conn:
        for table in TABLES:
            r = await conn.execute(text(f"select count(*) from {table}"))
            print(f"{table:<15} {r.scalar_one()}")
        r2 = await conn.execute(text(
            "select order_id, user_id, total_price, status from orders order by created_at desc limit 5"
        ))
        for row in r2.fetchall():
            print(row)
    await engine.dispose()

asyncio.run(main())
