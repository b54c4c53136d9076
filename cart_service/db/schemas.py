# cart_service/db/schemas.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from cart_service.db.models import MAX_INTEGER_ID


# Базовая схема: camelCase в JSON, snake_case в Python
class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ---------- Каталог (только чтение) ----------

class ProductImageSchema(CamelModel):
    url: str


class ProductSummary(CamelModel):
    """Актуальные данные товара на момент запроса."""
    id: int
    name: str
    slug: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    discount: float = 0
    stock: int = 0
    images: List[ProductImageSchema] = []
    category: Optional[int] = None


# ---------- Корзина ----------

class CartLine(CamelModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    added_at: Optional[str] = None


class CartItemSummary(CamelModel):
    id: int
    name: str
    price: float
    original_price: Optional[float] = None
    discount: float = 0
    image: str = ""
    quantity: int
    stock: int = 0
    slug: Optional[str] = None
    category: Optional[int] = None
    item_total: float


class CartSummary(CamelModel):
    lines: List[CartItemSummary] = []
    grand_total: float = 0.0
    item_count: int = 0


class AddToCartRequest(CamelModel):
    product_id: int = Field(..., ge=1, le=MAX_INTEGER_ID, strict=True)
    quantity: int = Field(1, ge=1, strict=True)


class UpdateCartItemRequest(CamelModel):
    quantity: int = Field(..., strict=True)


class MergeCartItem(CamelModel):
    # Гостевая корзина приходит с клиента как есть, некорректные строки пропускаются
    product_id: Optional[int] = None
    quantity: Optional[int] = None


class MergeCartRequest(CamelModel):
    items: List[MergeCartItem]


class CartResponse(CamelModel):
    success: bool = True
    items: List[CartItemSummary] = []
    total: float = 0.0
    item_count: int = 0


class CartCountResponse(CamelModel):
    success: bool = True
    item_count: int = 0


# ---------- Список желаемого ----------

class WishlistRequest(CamelModel):
    product_id: int = Field(..., ge=1, le=MAX_INTEGER_ID, strict=True)


class WishlistResponse(CamelModel):
    success: bool = True
    wishlist: List[ProductSummary] = []


class WishlistCheckResponse(CamelModel):
    success: bool = True
    is_in_wishlist: bool


# ---------- Общие ----------

class MessageResponse(CamelModel):
    success: bool = True
    message: str
