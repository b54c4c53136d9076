# cart_service/db/init_db.py
from sqlalchemy.ext.asyncio import AsyncEngine

from cart_service.db.database import engine as default_engine, Base
from cart_service.db import models  # noqa: F401  регистрирует таблицы в Base.metadata


async def init_db(engine: AsyncEngine = None):
    async with (engine or default_engine).begin() as conn:
        # Создание всех таблиц
        await conn.run_sync(Base.metadata.create_all)
