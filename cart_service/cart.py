# cart_service/cart.py
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple

from cart_service.db.schemas import CartItemSummary, CartLine, CartSummary, ProductSummary
from cart_service.db.store import UserStore
from cart_service.errors import InsufficientStock, InvalidQuantity, NotFound


# ---------- Операции над списком строк корзины ----------
# Каждая функция возвращает новый список и не меняет входной.

def find_line(cart: List[dict], product_id: int) -> int:
    for index, line in enumerate(cart):
        if line.get("product_id") == product_id:
            return index
    return -1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def add_quantity(cart: List[dict], product_id: int, quantity: int, stock: int) -> List[dict]:
    """Добавляет ``quantity`` товара; итоговая строка не может превышать ``stock``."""
    index = find_line(cart, product_id)
    current = cart[index]["quantity"] if index > -1 else 0
    if current + quantity > stock:
        raise InsufficientStock(stock)

    updated = [dict(line) for line in cart]
    if index > -1:
        updated[index]["quantity"] = current + quantity
    else:
        updated.append({"product_id": product_id, "quantity": quantity, "added_at": _now()})
    return updated


def set_quantity(cart: List[dict], product_id: int, quantity: int, stock: int) -> List[dict]:
    """Устанавливает количество. Значение меньше 1 удаляет строку."""
    index = find_line(cart, product_id)
    if index == -1:
        raise NotFound("Product not found in cart")
    if quantity < 1:
        return remove_line(cart, product_id)
    if quantity > stock:
        raise InsufficientStock(stock)

    updated = [dict(line) for line in cart]
    updated[index]["quantity"] = quantity
    return updated


def remove_line(cart: List[dict], product_id: int) -> List[dict]:
    index = find_line(cart, product_id)
    if index == -1:
        raise NotFound("Product not found in cart")
    return [dict(line) for i, line in enumerate(cart) if i != index]


def merge_quantity(cart: List[dict], product_id: int, quantity: int, stock: int) -> List[dict]:
    """
    Как ``add_quantity``, но вместо ошибки обрезает количество до ``stock``.
    Существующая строка никогда не уменьшается, пустая строка не создаётся.
    """
    index = find_line(cart, product_id)
    current = cart[index]["quantity"] if index > -1 else 0
    target = min(current + quantity, stock)
    if target <= current:
        return cart

    updated = [dict(line) for line in cart]
    if index > -1:
        updated[index]["quantity"] = target
    else:
        updated.append({"product_id": product_id, "quantity": target, "added_at": _now()})
    return updated


def to_lines(cart: List[dict]) -> List[CartLine]:
    return [CartLine(**line) for line in cart]


def summarize(cart: List[dict], products: Dict[int, ProductSummary]) -> CartSummary:
    # Строки с удалённым товаром не показываются, но из базы не удаляются
    items = []
    total = 0.0
    item_count = 0
    for line in cart:
        product = products.get(line["product_id"])
        if product is None:
            continue
        quantity = line["quantity"]
        item_total = product.price * quantity
        total += item_total
        item_count += quantity
        items.append(CartItemSummary(
            id=product.id,
            name=product.name,
            price=product.price,
            original_price=product.original_price,
            discount=product.discount,
            image=product.images[0].url if product.images else "",
            quantity=quantity,
            stock=product.stock,
            slug=product.slug,
            category=product.category,
            item_total=round(item_total, 2),
        ))
    return CartSummary(lines=items, grand_total=round(total, 2), item_count=item_count)


# ---------- Сервис ----------

class CartService:
    """
    Корзина пользователя: не больше одной строки на товар, количество от 1 и
    не выше остатка, прочитанного во время операции. Остаток только
    проверяется, но не резервируется.
    """

    def __init__(self, users: UserStore, products, logger: logging.Logger = None):
        self.users = users
        self.products = products
        self.logger = logger or logging.getLogger(__name__)

    async def _require_product(self, product_id: int) -> ProductSummary:
        product = await self.products.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    async def get_cart(self, user_id: int) -> List[CartLine]:
        user = await self.users.get(user_id)
        return to_lines(user.cart)

    async def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> List[CartLine]:
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")
        product = None

        # Товар и остаток читаются до агрегата, заново на каждой попытке
        async def load_product():
            nonlocal product
            product = await self._require_product(product_id)

        async def apply(user):
            user.cart = add_quantity(user.cart, product_id, quantity, product.stock)
            return user.cart

        cart = await self.users.modify(user_id, apply, "cart.add", product_id, prepare=load_product)
        self.logger.info("User %s added %s x %s to cart", user_id, quantity, product_id)
        return to_lines(cart)

    async def update_item(self, user_id: int, product_id: int, quantity: int) -> List[CartLine]:
        product = None

        async def load_product():
            nonlocal product
            product = await self._require_product(product_id)

        async def apply(user):
            user.cart = set_quantity(user.cart, product_id, quantity, product.stock)
            return user.cart

        cart = await self.users.modify(user_id, apply, "cart.update", product_id, prepare=load_product)
        self.logger.info("User %s set quantity of %s to %s", user_id, product_id, quantity)
        return to_lines(cart)

    async def remove_item(self, user_id: int, product_id: int) -> List[CartLine]:
        async def apply(user):
            user.cart = remove_line(user.cart, product_id)
            return user.cart

        cart = await self.users.modify(user_id, apply, "cart.remove", product_id)
        self.logger.info("User %s removed %s from cart", user_id, product_id)
        return to_lines(cart)

    async def clear(self, user_id: int) -> List[CartLine]:
        async def apply(user):
            user.cart = []
            return user.cart

        await self.users.modify(user_id, apply, "cart.clear")
        self.logger.info("User %s cleared cart", user_id)
        return []

    async def merge(self, user_id: int, items: Iterable[Tuple[int, int]]) -> List[CartLine]:
        """Переносит гостевую корзину (пары ``(product_id, quantity)``) в корзину пользователя."""
        wanted = [(product_id, quantity) for product_id, quantity in items
                  if product_id is not None and quantity is not None and quantity > 0]

        products = {}

        async def load_products():
            nonlocal products
            products = await self.products.get_many([product_id for product_id, _ in wanted])

        async def apply(user):
            cart = user.cart
            for product_id, quantity in wanted:
                product = products.get(product_id)
                if product is None:
                    continue
                cart = merge_quantity(cart, product_id, quantity, product.stock)
            user.cart = cart
            return cart

        cart = await self.users.modify(user_id, apply, "cart.merge", prepare=load_products)
        self.logger.info("User %s merged %s guest cart lines", user_id, len(wanted))
        return to_lines(cart)

    async def count(self, user_id: int) -> int:
        user = await self.users.get(user_id)
        return sum(line["quantity"] for line in user.cart)

    async def compute_summary(self, user_id: int) -> CartSummary:
        user = await self.users.get(user_id)
        products = await self.products.get_many([line["product_id"] for line in user.cart])
        return summarize(user.cart, products)
