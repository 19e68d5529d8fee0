"""Order management service."""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from opentelemetry import trace

from storefront.config import CURRENCY
from storefront.errors import ValidationError
from storefront.models import Order, Product, User, utcnow
from storefront.monitoring import checkout_amount_histogram, checkout_counter
from storefront.schemas import ProductResponse, UserResponse
from storefront.services.cart_service import CartService

logger = logging.getLogger(__name__)

PAYMENT_METHOD_COD = "COD"
STATUS_CASH_ON_DELIVERY = "Cash on Delivery"
NO_ORDERS_MESSAGE = "No Orders Found"


def cart_amount(items: List[Dict[str, Any]]) -> float:
    """Sum of price * quantity over line items; lines without a price count as 0."""
    total = sum((item.get("price") or 0.0) * item["quantity"] for item in items)
    return round(total, 2)


class OrderService:
    """Service for checkout and order history."""

    def __init__(self, cart_service: CartService):
        """
        Initialize order service.

        Args:
            cart_service: Cart service instance
        """
        self.cart_service = cart_service
        self.tracer = trace.get_tracer(__name__)

    def create_order(
        self,
        db: Session,
        user_id: str,
        address: Optional[str],
        email: Optional[str],
        contact: Optional[str],
        cart_total: Optional[float] = None
    ) -> Dict[str, str]:
        """
        Place a cash-on-delivery order from the user's current cart.

        The line items are copied verbatim. The payment amount is computed
        from the copied lines; a differing client total is only logged. The
        cart itself is left untouched.

        Args:
            db: Database session
            user_id: User identifier
            address: Delivery address
            email: Contact email
            contact: Contact phone
            cart_total: Total as displayed to the client

        Returns:
            Acknowledgment message

        Raises:
            ValidationError: If the user has no cart or it is empty
        """
        span = trace.get_current_span()
        span.set_attribute("payment.method", PAYMENT_METHOD_COD)

        cart = self.cart_service.find_cart(db, user_id)
        if not cart or not cart.products:
            checkout_counter.add(1, {"status": "empty_cart"})
            raise ValidationError("User cart is empty")

        items = [dict(item) for item in cart.products]
        amount = cart_amount(items)

        if cart_total is not None and abs(cart_total - amount) > 0.005:
            logger.warning("Client cart total differs from computed amount", extra={
                "user_id": user_id,
                "client_total": cart_total,
                "computed_total": amount
            })

        order = Order(
            products=items,
            payment_intent={
                "id": uuid.uuid4().hex,
                "method": PAYMENT_METHOD_COD,
                "amount": amount,
                "status": STATUS_CASH_ON_DELIVERY,
                "created": utcnow().isoformat(),
                "currency": CURRENCY
            },
            order_by=user_id,
            address=address,
            email=email,
            contact=contact,
            order_status=STATUS_CASH_ON_DELIVERY
        )

        with self.tracer.start_as_current_span("db.transaction.create_order") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("user.id", user_id)
            db_span.set_attribute("order.total_amount", amount)

            db.add(order)
            db.commit()
            db_span.set_attribute("order.id", order.id)

        checkout_counter.add(1, {"status": "completed", "payment_method": PAYMENT_METHOD_COD})
        checkout_amount_histogram.record(amount, {"payment_method": PAYMENT_METHOD_COD})

        logger.info("Checkout completed", extra={
            "user_id": user_id,
            "order_id": order.id,
            "amount": amount,
            "item_count": len(items)
        })

        return {"message": "Order created successfully"}

    def get_user_orders(self, db: Session, user_id: str) -> Dict[str, Any]:
        """
        Get all orders for a user with product and user references resolved.

        Args:
            db: Database session
            user_id: User identifier

        Returns:
            `{"orders": [...]}`, plus an informational message when there are none
        """
        with self.tracer.start_as_current_span("db.query.get_user_orders") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("user.id", user_id)

            orders = (
                db.query(Order)
                .filter(Order.order_by == user_id)
                .order_by(Order.created_at)
                .all()
            )

            db_span.set_attribute("db.rows_returned", len(orders))

        if not orders:
            return {"orders": [], "message": NO_ORDERS_MESSAGE}

        product_ids = {item["product_id"] for order in orders for item in order.products}
        products = {
            p.id: ProductResponse.model_validate(p)
            for p in db.query(Product).filter(Product.id.in_(product_ids)).all()
        }
        user = db.get(User, user_id)
        order_by = UserResponse.model_validate(user) if user else None

        return {
            "orders": [
                {
                    "id": order.id,
                    "products": [
                        {**item, "product": products.get(item["product_id"])}
                        for item in order.products
                    ],
                    "payment_intent": order.payment_intent,
                    "order_by": order_by,
                    "address": order.address,
                    "email": order.email,
                    "contact": order.contact,
                    "order_status": order.order_status,
                    "created_at": order.created_at
                }
                for order in orders
            ]
        }
