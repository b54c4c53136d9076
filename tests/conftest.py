"""
Shared fixtures: a fresh on-disk SQLite database per test, a small seeded
catalog, a user, and helpers that build services or an API client on top.
"""
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from cart_service.auth_utils import create_access_token
from cart_service.cart import CartService
from cart_service.catalog import DatabaseProductLookup
from cart_service.db.init_db import init_db
from cart_service.db.models import Category, Product, ProductImage, User
from cart_service.db.store import UserStore
from cart_service.wishlist import WishlistService


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cart.db'}", poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_user(session_factory, email: str) -> int:
    async with session_factory() as session:
        user = User(email=email, name=email.split("@")[0], cart=[], wishlist=[])
        session.add(user)
        await session.commit()
        return user.id


async def create_product(session_factory, name: str, price: float, stock: int, **fields) -> int:
    image_urls = fields.pop("image_urls", ())
    async with session_factory() as session:
        product = Product(name=name, price=price, stock=stock, **fields)
        product.images = [ProductImage(image_url=url) for url in image_urls]
        session.add(product)
        await session.commit()
        return product.id


async def delete_product(session_factory, product_id: int):
    async with session_factory() as session:
        await session.execute(delete(ProductImage).where(ProductImage.product_id == product_id))
        await session.execute(delete(Product).where(Product.id == product_id))
        await session.commit()


@pytest.fixture
async def user_id(session_factory) -> int:
    return await create_user(session_factory, "buyer@example.com")


@pytest.fixture
async def catalog(session_factory) -> dict:
    """
    Products used across the tests:
    - P1: stock 5, price 2.50
    - P3: stock 20, price 4.00
    - milk: stock 10, price 1.99, with an image and a discount
    - P2 is deliberately missing (id 9999)
    """
    async with session_factory() as session:
        dairy = Category(name="Dairy", slug="dairy")
        session.add(dairy)
        await session.commit()
        dairy_id = dairy.id

    return {
        "P1": await create_product(session_factory, "Basmati Rice 1kg", 2.50, 5, slug="basmati-rice"),
        "P2": 9999,
        "P3": await create_product(session_factory, "Red Lentils 500g", 4.00, 20, slug="red-lentils"),
        "milk": await create_product(
            session_factory, "Fresh Milk 1L", 1.99, 10, slug="fresh-milk",
            original_price=2.49, discount=20, category_id=dairy_id,
            image_urls=["https://cdn.example.com/milk.jpg", "https://cdn.example.com/milk-2.jpg"],
        ),
    }


class Services:
    """Builds services bound to their own session, the way one request would."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @asynccontextmanager
    async def cart(self, products=None, max_attempts: int = 3):
        async with self.session_factory() as session:
            yield CartService(UserStore(session, max_attempts=max_attempts),
                              products or DatabaseProductLookup(session))

    @asynccontextmanager
    async def wishlist(self, products=None):
        async with self.session_factory() as session:
            yield WishlistService(UserStore(session), products or DatabaseProductLookup(session))


@pytest.fixture
def services(session_factory) -> Services:
    return Services(session_factory)


@pytest.fixture
async def api_client(session_factory):
    """
    Async client for the real app with the database dependency pointed at the
    test database. Lifespan is not run, so the production engine is never used.
    """
    from cart_service.db.database import get_db
    from cart_service.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_id) -> dict:
    token = create_access_token({"sub": "buyer@example.com", "id": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def remove_product(session_factory):
    """Deletes a product from the catalog behind the cart's back."""
    async def remove(product_id: int):
        await delete_product(session_factory, product_id)
    return remove
