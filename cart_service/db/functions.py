# cart_service/db/functions.py
from typing import Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from cart_service.db.models import MAX_INTEGER_ID, User, Product


def is_valid_id(value) -> bool:
    # Строки с id вне диапазона столбца Integer не существует
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_INTEGER_ID


# Получение агрегата пользователя по ID.
# populate_existing перечитывает строку даже если объект уже в identity map
# (нужно при повторной попытке после конфликта версий).
async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    if not is_valid_id(user_id):
        return None
    result = await db.execute(
        select(User).filter(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# Получение одного товара вместе с изображениями
async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
    if not is_valid_id(product_id):
        return None
    result = await db.execute(
        select(Product)
        .filter(Product.id == product_id, Product.active.is_(True))
        .options(selectinload(Product.images))
    )
    return result.scalar_one_or_none()


# Получение нескольких товаров одним запросом
async def get_products_by_ids(db: AsyncSession, product_ids: Iterable[int]) -> List[Product]:
    ids = list({product_id for product_id in product_ids if is_valid_id(product_id)})
    if not ids:
        return []
    result = await db.execute(
        select(Product)
        .filter(Product.id.in_(ids), Product.active.is_(True))
        .options(selectinload(Product.images))
    )
    return list(result.scalars().all())
