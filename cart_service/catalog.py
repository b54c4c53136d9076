# cart_service/catalog.py
"""
Поиск товаров для корзины и списка желаемого.

Оба варианта предоставляют две корутины:

    get(product_id) -> ProductSummary | None
    get_many(product_ids) -> {product_id: ProductSummary}

Несуществующий (или неактивный) товар даёт ``None`` и отсутствует в словаре.
Недоступность каталога даёт StorageError.
"""
import asyncio
import logging
from typing import Dict, Iterable, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cart_service.db.functions import get_product_by_id, get_products_by_ids, is_valid_id
from cart_service.db.models import Product
from cart_service.db.schemas import ProductImageSchema, ProductSummary
from cart_service.errors import StorageError

logger = logging.getLogger(__name__)


def product_summary(product: Product) -> ProductSummary:
    return ProductSummary(
        id=product.id,
        name=product.name,
        slug=product.slug,
        price=product.price,
        original_price=product.original_price,
        discount=product.discount or 0,
        stock=product.stock or 0,
        images=[ProductImageSchema(url=image.image_url) for image in product.images],
        category=product.category_id,
    )


class DatabaseProductLookup:
    """Читает таблицы каталога из той же базы."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, product_id: int) -> Optional[ProductSummary]:
        try:
            product = await get_product_by_id(self.db, product_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load product %s", product_id)
            raise StorageError("Failed to load product") from exc
        return product_summary(product) if product else None

    async def get_many(self, product_ids: Iterable[int]) -> Dict[int, ProductSummary]:
        try:
            products = await get_products_by_ids(self.db, product_ids)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load products %s", list(product_ids))
            raise StorageError("Failed to load products") from exc
        return {product.id: product_summary(product) for product in products}


class HttpProductLookup:
    """Запрашивает сервис каталога: GET {base_url}/products/{id}."""

    def __init__(self, base_url: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.client = client

    async def get(self, product_id: int) -> Optional[ProductSummary]:
        if not is_valid_id(product_id):
            return None
        url = f"{self.base_url}/products/{product_id}"
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            logger.error("Catalog request %s failed: %s", url, exc)
            raise StorageError("Catalog service unavailable") from exc

        if response.status_code == 404:
            return None
        if response.is_error:
            logger.error("Catalog returned %s for %s", response.status_code, url)
            raise StorageError("Catalog service error")

        data = response.json()
        if not data or not data.get("active", True):
            return None
        return ProductSummary(
            id=data["id"],
            name=data["name"],
            slug=data.get("slug"),
            price=data["price"],
            original_price=data.get("original_price"),
            discount=data.get("discount") or 0,
            stock=data.get("stock") or 0,
            images=[ProductImageSchema(url=image["image_url"]) for image in data.get("images") or []],
            category=data.get("category_id"),
        )

    async def get_many(self, product_ids: Iterable[int]) -> Dict[int, ProductSummary]:
        ids = list(dict.fromkeys(product_ids))
        products = await asyncio.gather(*(self.get(product_id) for product_id in ids))
        return {product.id: product for product in products if product is not None}
