"""Database models for the storefront service.

Carts and orders keep their line items as embedded JSON documents; a line
item is a plain dict with `product_id`, `title`, `image`, `price` and
`quantity`.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User model."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Product(Base):
    """Product model."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    slug = Column(String, index=True)
    description = Column(Text)
    price = Column(Float, nullable=False)
    image = Column(String)
    categories = Column(JSON, nullable=False, default=list)
    listed_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Cart(Base):
    """Shopping cart model, one per user."""
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), unique=True, index=True, nullable=False)
    products = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # UPDATE ... WHERE version = :loaded_version; a zero rowcount raises StaleDataError
    __mapper_args__ = {"version_id_col": version}


class Order(Base):
    """Order model. Line items are a snapshot of the cart at checkout."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    products = Column(JSON, nullable=False)
    payment_intent = Column(JSON, nullable=False)
    order_by = Column(String(36), index=True, nullable=False)
    address = Column(String)
    email = Column(String)
    contact = Column(String)
    order_status = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


def is_valid_id(value) -> bool:
    """True when value is a well-formed record identifier."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
