# cart_service/wishlist.py
import logging
from typing import List

from cart_service.db.schemas import ProductSummary
from cart_service.db.store import UserStore
from cart_service.errors import AlreadyExists, NotFound


class WishlistService:
    """Список желаемого: id товаров без повторов, не зависит от остатка и цены."""

    def __init__(self, users: UserStore, products, logger: logging.Logger = None):
        self.users = users
        self.products = products
        self.logger = logger or logging.getLogger(__name__)

    async def add_item(self, user_id: int, product_id: int) -> List[int]:
        async def check_product():
            if await self.products.get(product_id) is None:
                raise NotFound("Product not found")

        async def apply(user):
            if product_id in user.wishlist:
                raise AlreadyExists("Product already in wishlist")
            user.wishlist = list(user.wishlist) + [product_id]
            return user.wishlist

        wishlist = await self.users.modify(user_id, apply, "wishlist.add", product_id, prepare=check_product)
        self.logger.info("User %s added %s to wishlist", user_id, product_id)
        return list(wishlist)

    async def remove_item(self, user_id: int, product_id: int) -> List[int]:
        async def apply(user):
            if product_id not in user.wishlist:
                raise NotFound("Product not found in wishlist")
            wishlist = list(user.wishlist)
            wishlist.remove(product_id)
            user.wishlist = wishlist
            return wishlist

        wishlist = await self.users.modify(user_id, apply, "wishlist.remove", product_id)
        self.logger.info("User %s removed %s from wishlist", user_id, product_id)
        return list(wishlist)

    async def contains(self, user_id: int, product_id: int) -> bool:
        user = await self.users.get(user_id)
        return product_id in user.wishlist

    async def list(self, user_id: int) -> List[ProductSummary]:
        # Удалённые из каталога товары пропускаются, как и в корзине
        user = await self.users.get(user_id)
        products = await self.products.get_many(user.wishlist)
        return [products[product_id] for product_id in user.wishlist if product_id in products]
