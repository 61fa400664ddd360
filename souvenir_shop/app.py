# souvenir_shop/app.py

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

from souvenir_shop.db import create_tables, engine
from souvenir_shop.errors import ShopError, shop_error_handler
from souvenir_shop.events import redis as redis_client
from souvenir_shop import (
    admin,
    ai,
    auth,
    cart,
    categories,
    events,
    messages,
    models,
    notifications,
    orders,
    reviews,
    souvenirs,
    uploads,
    users,
    wishlist,
)

logger = logging.getLogger("souvenir_shop")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("[APP] database ready")
    yield
    await redis_client.aclose()
    await engine.dispose()

app = FastAPI(
    title="Souvenir Shop Backend",
    lifespan=lifespan,
)

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ShopError, shop_error_handler)

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(souvenirs.router)
app.include_router(reviews.router)
app.include_router(categories.router)
app.include_router(cart.router)
app.include_router(wishlist.router)
app.include_router(orders.router)
app.include_router(notifications.router)
app.include_router(messages.router)
app.include_router(admin.router)
app.include_router(uploads.router)
app.include_router(ai.router)
app.include_router(events.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "souvenir_shop.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("RELOAD", "false").lower() in ("1", "true", "yes"),
    )
