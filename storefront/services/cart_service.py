"""Cart management service."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from opentelemetry import trace

from storefront.errors import ConflictError, NotFoundError, ValidationError
from storefront.models import Cart, Product, is_valid_id
from storefront.monitoring import cart_conflicts_counter, cart_mutations_counter

logger = logging.getLogger(__name__)


def _find_line(items: List[Dict[str, Any]], product_id: str) -> int:
    for index, item in enumerate(items):
        if item["product_id"] == product_id:
            return index
    return -1


class CartService:
    """Service for managing shopping carts.

    Every read-modify-write goes through `_save`, which relies on the cart's
    version counter: a write based on a stale read is rejected with
    ConflictError rather than silently overwriting a concurrent change.
    """

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def find_cart(self, db: Session, user_id: str) -> Optional[Cart]:
        with self.tracer.start_as_current_span("db.query.get_cart") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "carts")
            db_span.set_attribute("user.id", user_id)

            cart = db.query(Cart).filter(Cart.user_id == user_id).first()

            db_span.set_attribute("db.rows_returned", 1 if cart else 0)
            return cart

    def _save(self, db: Session, cart: Cart, operation: str) -> Cart:
        with self.tracer.start_as_current_span("db.query.save_cart") as db_span:
            db_span.set_attribute("db.operation", "UPSERT")
            db_span.set_attribute("db.table", "carts")
            db_span.set_attribute("cart.operation", operation)
            try:
                db.add(cart)
                db.commit()
            except (StaleDataError, IntegrityError):
                db.rollback()
                cart_conflicts_counter.add(1, {"operation": operation})
                logger.warning("Cart write rejected: concurrent modification", extra={
                    "user_id": cart.user_id,
                    "operation": operation
                })
                raise ConflictError("Cart was modified by another request, please retry")
            db.refresh(cart)
            db_span.set_attribute("cart.version", cart.version)

        cart_mutations_counter.add(1, {"operation": operation})
        return cart

    def ensure_cart(self, db: Session, user_id: str) -> Cart:
        """
        Return the user's cart, creating an empty one if absent.

        Losing the insert to a concurrent create is not an error: the
        winner's cart is returned.

        Args:
            db: Database session
            user_id: User identifier
        """
        cart = self.find_cart(db, user_id)
        if cart:
            return cart

        logger.info("Creating empty cart", extra={"user_id": user_id})
        cart = Cart(user_id=user_id, products=[])
        with self.tracer.start_as_current_span("db.query.insert_cart") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "carts")
            db_span.set_attribute("user.id", user_id)
            try:
                db.add(cart)
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info("Cart created concurrently, using existing cart", extra={"user_id": user_id})
                existing = self.find_cart(db, user_id)
                if existing is None:
                    raise
                return existing
            db.refresh(cart)

        cart_mutations_counter.add(1, {"operation": "create"})
        return cart

    def add_item(
        self,
        db: Session,
        user_id: str,
        product_id: Optional[str],
        title: Optional[str],
        price: Optional[float],
        image: Optional[str],
        quantity: int
    ) -> Cart:
        """
        Add a product to the user's cart.

        An existing line for the same product has its quantity increased;
        otherwise a new line is appended. Title, price and image are stored
        as sent, falling back to the catalog record when omitted.

        Args:
            db: Database session
            user_id: User identifier
            product_id: Product identifier
            title: Display title captured at add time
            price: Unit price captured at add time
            image: Image captured at add time
            quantity: Quantity to add

        Returns:
            The persisted cart

        Raises:
            ValidationError: If the product id is missing or malformed
            NotFoundError: If the product does not exist
            ConflictError: If the cart changed concurrently
        """
        span = trace.get_current_span()
        span.set_attribute("product.id", str(product_id))
        span.set_attribute("quantity", quantity)

        if not product_id or not is_valid_id(product_id):
            raise ValidationError("Invalid product")

        with self.tracer.start_as_current_span("db.query.get_product") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "products")
            db_span.set_attribute("product.id", product_id)

            product = db.get(Product, product_id)
            db_span.set_attribute("db.rows_returned", 1 if product else 0)

        if not product:
            raise NotFoundError("Product not found")

        cart = self.find_cart(db, user_id)
        if cart is None:
            cart = Cart(user_id=user_id, products=[])

        items = [dict(item) for item in cart.products or []]
        index = _find_line(items, product_id)

        if index > -1:
            logger.info("Product already in cart, increasing quantity", extra={
                "user_id": user_id,
                "product_id": product_id,
                "from_quantity": items[index]["quantity"],
                "to_quantity": items[index]["quantity"] + quantity
            })
            items[index]["quantity"] += quantity
        else:
            items.append({
                "product_id": product_id,
                "title": title if title is not None else product.title,
                "image": image if image is not None else product.image,
                "price": price if price is not None else product.price,
                "quantity": quantity
            })

        cart.products = items
        return self._save(db, cart, "add")

    def get_cart(self, db: Session, user_id: str) -> Cart:
        """
        Get the user's cart.

        Raises:
            NotFoundError: If the user has no cart
        """
        cart = self.find_cart(db, user_id)
        if not cart:
            raise NotFoundError("Cart not found for this user")
        return cart

    def remove_item(self, db: Session, user_id: str, product_id: Optional[str]) -> Cart:
        """
        Remove a product's line from the user's cart.

        Raises:
            NotFoundError: If the user has no cart
            ValidationError: If the product is not in the cart
            ConflictError: If the cart changed concurrently
        """
        cart = self.get_cart(db, user_id)

        items = [dict(item) for item in cart.products or []]
        index = _find_line(items, product_id)
        if index == -1:
            raise ValidationError("Item does not exist in cart")

        del items[index]
        cart.products = items

        logger.info("Removed product from cart", extra={
            "user_id": user_id,
            "product_id": product_id
        })
        return self._save(db, cart, "remove")

    def update_quantity(
        self,
        db: Session,
        user_id: str,
        product_id: Optional[str],
        quantity: int
    ) -> Cart:
        """
        Overwrite the quantity of a product's line. The value is stored as given.

        Raises:
            NotFoundError: If the user has no cart
            ValidationError: If the product is not in the cart
            ConflictError: If the cart changed concurrently
        """
        cart = self.get_cart(db, user_id)

        items = [dict(item) for item in cart.products or []]
        index = _find_line(items, product_id)
        if index == -1:
            raise ValidationError("Item does not exist in cart")

        items[index]["quantity"] = quantity
        cart.products = items

        logger.info("Updated cart item quantity", extra={
            "user_id": user_id,
            "product_id": product_id,
            "quantity": quantity
        })
        return self._save(db, cart, "update")

    def delete_cart(self, db: Session, user_id: str) -> None:
        """
        Delete the user's cart.

        Raises:
            NotFoundError: If the user has no cart
            ConflictError: If the cart changed concurrently
        """
        cart = self.get_cart(db, user_id)

        with self.tracer.start_as_current_span("db.query.delete_cart") as db_span:
            db_span.set_attribute("db.operation", "DELETE")
            db_span.set_attribute("db.table", "carts")
            db_span.set_attribute("user.id", user_id)
            try:
                db.delete(cart)
                db.commit()
            except StaleDataError:
                db.rollback()
                cart_conflicts_counter.add(1, {"operation": "delete"})
                raise ConflictError("Cart was modified by another request, please retry")

        cart_mutations_counter.add(1, {"operation": "delete"})
        logger.info("Cart deleted", extra={"user_id": user_id})
