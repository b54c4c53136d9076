# cart_service/db/database.py
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from cart_service.config import DATABASE_URL, SQL_ECHO

# Настройка асинхронного движка
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)

# Асинхронная фабрика сессий
SessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Базовый класс для моделей
Base = declarative_base()

# Генератор сессий
async def get_db():
    async with SessionLocal() as session:
        yield session
