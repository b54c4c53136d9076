# cart_service/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _database_url() -> str:
    url = os.getenv("CART_DATABASE_URL")
    if url:
        return url
    return (
        f"postgresql+asyncpg://{os.getenv('CART_DB_USER', 'postgres')}:{os.getenv('CART_DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('CART_DB_HOST', 'localhost')}:{os.getenv('CART_DB_PORT', '5432')}/{os.getenv('CART_DB_NAME', 'cart')}"
    )


DATABASE_URL = _database_url()
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

SECRET_KEY = os.getenv("SECRET_KEY", "your_secret_key")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Пусто -> товары читаются из таблиц каталога в той же БД
CATALOG_SERVICE_URL = os.getenv("CATALOG_SERVICE_URL", "")
CATALOG_TIMEOUT = float(os.getenv("CATALOG_TIMEOUT", "5"))

# Сколько раз повторять read-modify-write при конфликте версий
CART_SAVE_ATTEMPTS = int(os.getenv("CART_SAVE_ATTEMPTS", "3"))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
