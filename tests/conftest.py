import os

# Must be set before anything from storefront is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OTEL_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from storefront.auth import Identity
from storefront.database import SessionLocal, engine
from storefront.main import app
from storefront.models import Base
from storefront.security import ROLE_ADMIN, ROLE_USER
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService
from storefront.services.user_service import UserService
from tests.helpers import make_product


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def cart_service():
    return CartService()


@pytest.fixture()
def order_service(cart_service):
    return OrderService(cart_service)


@pytest.fixture()
def user_service(cart_service):
    return UserService(cart_service)


@pytest.fixture()
def product_service():
    return ProductService()


@pytest.fixture()
def admin():
    return Identity(user_id="00000000-0000-0000-0000-00000000a001", role=ROLE_ADMIN)


@pytest.fixture()
def shopper():
    return Identity(user_id="00000000-0000-0000-0000-00000000b001", role=ROLE_USER)


@pytest.fixture()
def product(db):
    return make_product(db)


@pytest.fixture()
def other_product(db):
    return make_product(db, title="Linen Shirt", price=59.0, categories=("shirts", "men"))
