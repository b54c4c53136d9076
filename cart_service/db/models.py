# cart_service/db/models.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from cart_service.db.database import Base

# Верхняя граница столбца Integer (int4 в PostgreSQL)
MAX_INTEGER_ID = 2 ** 31 - 1


# Агрегат пользователя: корзина и список желаемого хранятся внутри записи
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # [{"product_id": int, "quantity": int, "added_at": str}, ...]
    cart = Column(JSON, nullable=False, default=list)
    # [product_id, ...] в порядке добавления
    wishlist = Column(JSON, nullable=False, default=list)

    # Штамп оптимистической блокировки, увеличивается при каждом сохранении
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


# Таблицы каталога; этот сервис только читает их
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    slug = Column(String, unique=True, nullable=True)

    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    slug = Column(String, unique=True, nullable=True)
    description = Column(String, nullable=True)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)
    discount = Column(Float, default=0)  # Скидка в процентах
    stock = Column(Integer, default=0)  # Количество в наличии
    active = Column(Boolean, default=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    category = relationship("Category", back_populates="products")
    images = relationship("ProductImage", back_populates="product", order_by="ProductImage.id")


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"))
    image_url = Column(String, nullable=False)

    product = relationship("Product", back_populates="images")
