"""Pytest fixtures for storefront tests."""

import os
import tempfile

# settings are read at import time, so point them at throwaway resources first
os.environ.setdefault("ENV", "test")
os.environ.setdefault("SQLALCHEMY_URL", "sqlite://")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="storefront-test-uploads-"))

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront import models  # noqa: F401
from storefront.database import get_session
from storefront.main import app
from storefront.models.category import Category
from storefront.models.product import Product, ProductImage, ProductVariant
from storefront.models.promo_code import DiscountType, PromoCode
from storefront.models.user import User
from storefront.services.media_service import LocalBlobStore, get_blob_store
from storefront.utils.clock import utcnow
from storefront.utils.hash import hash_password
from storefront.utils.token import create_access_token


@pytest.fixture
def engine():
    """In-memory SQLite shared by the test and every request it makes."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "uploads"), "/uploads")


@pytest.fixture
def client(engine, blob_store):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    yield TestClient(app)

    app.dependency_overrides.clear()


def _make_user(session, email, role="customer", can_login=True):
    user = User(
        name=email.split("@")[0].title(),
        email=email,
        password=hash_password("password123"),
        role=role,
        can_login=can_login,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(session):
    return _make_user(session, "shopper@example.com")


@pytest.fixture
def other_user(session):
    return _make_user(session, "someone@example.com")


@pytest.fixture
def admin(session):
    return _make_user(session, "admin@example.com", role="admin")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def make_product(session):
    """Factory for products; keyword arguments override the defaults."""
    counter = {"n": 0}

    def factory(name=None, price=10.0, inventory=10, image=None, categories=(), variants=(), **fields):
        counter["n"] += 1
        name = name or f"Product {counter['n']}"
        slug = fields.pop("slug", name.lower().replace(" ", "-"))
        product = Product(
            name=name,
            slug=slug,
            price=price,
            inventory=inventory,
            **fields,
        )
        product.categories = list(categories)
        if image:
            product.images = [ProductImage(url=image, alt=name, is_default=True)]
        product.variants = [ProductVariant(**v) for v in variants]
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return factory


@pytest.fixture
def make_category(session):
    def factory(name, slug=None):
        category = Category(name=name, slug=slug or name.lower())
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    return factory


@pytest.fixture
def make_promo(session):
    def factory(code="SAVE10", discount_type=DiscountType.PERCENTAGE, discount_amount=10.0, **fields):
        fields.setdefault("start_date", utcnow() - timedelta(days=1))
        promo = PromoCode(
            code=code,
            discount_type=discount_type,
            discount_amount=discount_amount,
            **fields,
        )
        session.add(promo)
        session.commit()
        session.refresh(promo)
        return promo

    return factory


SHIPPING_ADDRESS = {
    "street": "1 Market Street",
    "city": "Springfield",
    "state": "IL",
    "postalCode": "62701",
    "country": "US",
}


@pytest.fixture
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture
def headers_for():
    return auth_headers
