# cart_service/db/store.py
import logging
from typing import Any, Awaitable, Callable
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cart_service.config import CART_SAVE_ATTEMPTS
from cart_service.db.functions import get_user_by_id
from cart_service.db.models import User
from cart_service.errors import NotFound, StorageError

Mutation = Callable[[User], Awaitable[Any]]
Prepare = Callable[[], Awaitable[Any]]


class UserStore:
    """
    Загрузка и сохранение агрегата пользователя (строка users вместе с
    корзиной и списком желаемого).

    Запись идёт через ``modify``: prepare (например, чтение товара и остатка),
    загрузка агрегата, изменение, commit. Столбец ``version`` делает commit
    условным: если другой запрос успел сохранить раньше, SQLAlchemy бросает
    ``StaleDataError``, и весь цикл повторяется на свежих данных, не более
    ``max_attempts`` раз.

    Изменение присваивает поля агрегата только после всех проверок, поэтому
    исключение из него не оставляет ничего для отката.
    """

    def __init__(self, db: AsyncSession, max_attempts: int = CART_SAVE_ATTEMPTS,
                 logger: logging.Logger = None):
        self.db = db
        self.max_attempts = max(1, max_attempts)
        self.logger = logger or logging.getLogger(__name__)

    async def get(self, user_id: int) -> User:
        try:
            user = await get_user_by_id(self.db, user_id)
        except SQLAlchemyError as exc:
            self.logger.exception("Failed to load user %s", user_id)
            raise StorageError("Failed to load user") from exc
        if user is None:
            raise NotFound("User not found")
        return user

    async def modify(self, user_id: int, mutate: Mutation, operation: str, product_id: int = None,
                     prepare: Prepare = None):
        for attempt in range(1, self.max_attempts + 1):
            if prepare is not None:
                await prepare()
            user = await self.get(user_id)
            result = await mutate(user)
            try:
                await self.db.commit()
            except StaleDataError:
                await self.db.rollback()
                self.logger.warning(
                    "Version conflict in %s for user %s (product %s), attempt %d of %d",
                    operation, user_id, product_id, attempt, self.max_attempts,
                )
                continue
            except SQLAlchemyError as exc:
                await self.db.rollback()
                self.logger.exception(
                    "Failed to save user %s in %s (product %s)", user_id, operation, product_id
                )
                raise StorageError("Failed to save user") from exc
            return result

        self.logger.error(
            "Giving up on %s for user %s (product %s) after %d conflicting attempts",
            operation, user_id, product_id, self.max_attempts,
        )
        raise StorageError("The cart was modified concurrently, please try again")
