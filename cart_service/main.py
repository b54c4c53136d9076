# cart_service/main.py
import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncGenerator

import httpx
from fastapi import FastAPI, Depends, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cart_service.auth_utils import get_current_user_id
from cart_service.cart import CartService
from cart_service.catalog import DatabaseProductLookup, HttpProductLookup
from cart_service.config import CATALOG_SERVICE_URL, CATALOG_TIMEOUT, CART_SAVE_ATTEMPTS, CORS_ORIGINS, LOG_LEVEL
from cart_service.db.database import get_db
from cart_service.db.init_db import init_db
from cart_service.db.models import MAX_INTEGER_ID
from cart_service.db.schemas import (
    AddToCartRequest,
    CartCountResponse,
    CartResponse,
    MergeCartRequest,
    MessageResponse,
    UpdateCartItemRequest,
    WishlistCheckResponse,
    WishlistRequest,
    WishlistResponse,
)
from cart_service.db.store import UserStore
from cart_service.errors import CartServiceError
from cart_service.wishlist import WishlistService

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    await init_db()
    yield


app = FastAPI(title="Cart Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Ошибки ----------

@app.exception_handler(CartServiceError)
async def cart_service_error_handler(request: Request, exc: CartServiceError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


# ---------- Зависимости ----------

ProductId = Annotated[int, Path(ge=1, le=MAX_INTEGER_ID)]


async def get_product_lookup(db: AsyncSession = Depends(get_db)):
    if CATALOG_SERVICE_URL:
        async with httpx.AsyncClient(timeout=CATALOG_TIMEOUT) as client:
            yield HttpProductLookup(CATALOG_SERVICE_URL, client)
    else:
        yield DatabaseProductLookup(db)


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(db, max_attempts=CART_SAVE_ATTEMPTS)


def get_cart_service(users: UserStore = Depends(get_user_store), products=Depends(get_product_lookup)) -> CartService:
    return CartService(users, products)


def get_wishlist_service(users: UserStore = Depends(get_user_store), products=Depends(get_product_lookup)) -> WishlistService:
    return WishlistService(users, products)


# ---------- Корзина ----------

@app.get("/api/cart", response_model=CartResponse)
async def get_cart(user_id: int = Depends(get_current_user_id), cart: CartService = Depends(get_cart_service)):
    summary = await cart.compute_summary(user_id)
    logger.debug("Cart for user %s: %s items, total %s", user_id, summary.item_count, summary.grand_total)
    return CartResponse(items=summary.lines, total=summary.grand_total, item_count=summary.item_count)


@app.get("/api/cart/count", response_model=CartCountResponse)
async def get_cart_count(user_id: int = Depends(get_current_user_id), cart: CartService = Depends(get_cart_service)):
    return CartCountResponse(item_count=await cart.count(user_id))


@app.post("/api/cart", response_model=MessageResponse, status_code=201)
async def add_to_cart(body: AddToCartRequest, user_id: int = Depends(get_current_user_id),
                      cart: CartService = Depends(get_cart_service)):
    await cart.add_item(user_id, body.product_id, body.quantity)
    return MessageResponse(message="Product added to cart")


@app.post("/api/cart/merge", response_model=MessageResponse)
async def merge_cart(body: MergeCartRequest, user_id: int = Depends(get_current_user_id),
                     cart: CartService = Depends(get_cart_service)):
    await cart.merge(user_id, [(item.product_id, item.quantity) for item in body.items])
    return MessageResponse(message="Cart merged successfully")


@app.put("/api/cart/{product_id}", response_model=MessageResponse)
async def update_cart_item(product_id: ProductId, body: UpdateCartItemRequest, user_id: int = Depends(get_current_user_id),
                           cart: CartService = Depends(get_cart_service)):
    await cart.update_item(user_id, product_id, body.quantity)
    return MessageResponse(message="Cart updated successfully")


@app.delete("/api/cart/{product_id}", response_model=MessageResponse)
async def remove_from_cart(product_id: ProductId, user_id: int = Depends(get_current_user_id),
                           cart: CartService = Depends(get_cart_service)):
    await cart.remove_item(user_id, product_id)
    return MessageResponse(message="Product removed from cart")


@app.delete("/api/cart", response_model=MessageResponse)
async def clear_cart(user_id: int = Depends(get_current_user_id), cart: CartService = Depends(get_cart_service)):
    await cart.clear(user_id)
    return MessageResponse(message="Cart cleared successfully")


# ---------- Список желаемого ----------

@app.get("/api/wishlist", response_model=WishlistResponse)
async def get_wishlist(user_id: int = Depends(get_current_user_id),
                       wishlist: WishlistService = Depends(get_wishlist_service)):
    return WishlistResponse(wishlist=await wishlist.list(user_id))


@app.post("/api/wishlist", response_model=MessageResponse, status_code=201)
async def add_to_wishlist(body: WishlistRequest, user_id: int = Depends(get_current_user_id),
                          wishlist: WishlistService = Depends(get_wishlist_service)):
    await wishlist.add_item(user_id, body.product_id)
    return MessageResponse(message="Product added to wishlist")


@app.delete("/api/wishlist/{product_id}", response_model=MessageResponse)
async def remove_from_wishlist(product_id: ProductId, user_id: int = Depends(get_current_user_id),
                               wishlist: WishlistService = Depends(get_wishlist_service)):
    await wishlist.remove_item(user_id, product_id)
    return MessageResponse(message="Product removed from wishlist")


@app.get("/api/wishlist/check/{product_id}", response_model=WishlistCheckResponse)
async def check_wishlist(product_id: ProductId, user_id: int = Depends(get_current_user_id),
                         wishlist: WishlistService = Depends(get_wishlist_service)):
    return WishlistCheckResponse(is_in_wishlist=await wishlist.contains(user_id, product_id))


@app.get("/")
async def health_check():
    """Health check endpoint."""
    return {"status": "cart_service running"}


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8003)))
