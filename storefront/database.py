"""Database connection and session management."""
import logging
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from slugify import slugify

from storefront.config import DATABASE_URL
from storefront.models import Base, Product

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 3600,
        "pool_timeout": 30,
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session.

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


SAMPLE_PRODUCTS = [
    {"title": "Canvas Tote Bag", "price": 24.0, "categories": ["bags", "women"]},
    {"title": "Leather Weekender", "price": 189.0, "categories": ["bags", "men"]},
    {"title": "Linen Shirt", "price": 59.0, "categories": ["shirts", "men"]},
    {"title": "Wrap Dress", "price": 89.0, "categories": ["dresses", "women"]},
    {"title": "Wool Beanie", "price": 19.0, "categories": ["accessories"]},
]


def init_db(seed: bool = False) -> None:
    """Create database tables and optionally seed sample products."""
    Base.metadata.create_all(bind=engine)

    if not seed:
        return

    db = SessionLocal()
    try:
        if db.query(Product).count() == 0:
            db.add_all([
                Product(slug=slugify(data["title"]), **data)
                for data in SAMPLE_PRODUCTS
            ])
            db.commit()
            logger.info("Seeded database with sample products", extra={
                "count": len(SAMPLE_PRODUCTS)
            })
    finally:
        db.close()
