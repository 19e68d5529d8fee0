"""Product catalog service."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from opentelemetry import trace
from slugify import slugify

from storefront.auth import Identity, authorize_admin
from storefront.errors import NotFoundError, ValidationError
from storefront.models import Product
from storefront.monitoring import product_views_counter

logger = logging.getLogger(__name__)

NEW_PRODUCTS_LIMIT = 2


class ProductService:
    """Service for reading and administering the catalog."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def list_products(
        self,
        db: Session,
        new: bool = False,
        category: Optional[str] = None
    ) -> List[Product]:
        """
        List products.

        Args:
            db: Database session
            new: Only the most recently created products
            category: Only products tagged with this category

        Returns:
            Matching products

        Raises:
            NotFoundError: If nothing matches
        """
        with self.tracer.start_as_current_span("db.query.list_products") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "products")

            query = db.query(Product)
            if new:
                products = query.order_by(Product.created_at.desc()).limit(NEW_PRODUCTS_LIMIT).all()
            elif category:
                # Category membership is checked in Python to stay portable across JSON backends
                products = [p for p in query.all() if category in (p.categories or [])]
            else:
                products = query.all()

            db_span.set_attribute("db.rows_returned", len(products))

        product_views_counter.add(1, {"view": "catalog"})

        if not products:
            raise NotFoundError("No Products Found")
        return products

    def get_product(self, db: Session, product_id: str) -> Product:
        """
        Get a product by id.

        Raises:
            NotFoundError: If the product does not exist
        """
        with self.tracer.start_as_current_span("db.query.get_product") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "products")
            db_span.set_attribute("product.id", product_id)

            product = db.get(Product, product_id)
            db_span.set_attribute("db.rows_returned", 1 if product else 0)

        if not product:
            raise NotFoundError("Product not found")

        product_views_counter.add(1, {"view": "detail"})
        return product

    def create_product(self, db: Session, identity: Identity, fields: Dict[str, Any]) -> Product:
        """
        Create a product listed by an admin.

        Raises:
            ForbiddenError: If the identity is not an admin
            ValidationError: If title or price is missing
        """
        authorize_admin(identity)

        if not fields.get("title") or not fields.get("price"):
            raise ValidationError("Title and price are required")

        product = Product(
            **fields,
            slug=slugify(fields["title"]),
            listed_by=identity.user_id
        )

        with self.tracer.start_as_current_span("db.query.insert_product") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "products")
            db.add(product)
            db.commit()
            db.refresh(product)
            db_span.set_attribute("product.id", product.id)

        logger.info("Product created", extra={
            "product_id": product.id,
            "slug": product.slug,
            "listed_by": identity.user_id
        })
        return product

    def update_product(
        self,
        db: Session,
        identity: Identity,
        product_id: str,
        fields: Dict[str, Any]
    ) -> Product:
        """
        Apply a partial update. The slug follows the title.

        Raises:
            ForbiddenError: If the identity is not an admin
            NotFoundError: If the product does not exist
            ValidationError: If the title is blank
        """
        authorize_admin(identity)

        product = db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")

        if "title" in fields:
            if not fields["title"] or not fields["title"].strip():
                raise ValidationError("Title cannot be empty")
            fields["slug"] = slugify(fields["title"])

        with self.tracer.start_as_current_span("db.query.update_product") as db_span:
            db_span.set_attribute("db.operation", "UPDATE")
            db_span.set_attribute("db.table", "products")
            db_span.set_attribute("product.id", product_id)

            for name, value in fields.items():
                setattr(product, name, value)
            db.commit()
            db.refresh(product)

        logger.info("Product updated", extra={
            "product_id": product_id,
            "fields": sorted(fields)
        })
        return product

    def delete_product(self, db: Session, identity: Identity, product_id: str) -> None:
        """
        Delete a product.

        Raises:
            ForbiddenError: If the identity is not an admin
            NotFoundError: If the product does not exist
        """
        authorize_admin(identity)

        product = db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")

        with self.tracer.start_as_current_span("db.query.delete_product") as db_span:
            db_span.set_attribute("db.operation", "DELETE")
            db_span.set_attribute("db.table", "products")
            db_span.set_attribute("product.id", product_id)
            db.delete(product)
            db.commit()

        logger.info("Product deleted", extra={"product_id": product_id})
