"""Dependency injection for services."""
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService
from storefront.services.user_service import UserService


def get_cart_service() -> CartService:
    """Get cart service instance."""
    return CartService()


def get_product_service() -> ProductService:
    """Get product service instance."""
    return ProductService()


def get_user_service() -> UserService:
    """Get user service instance."""
    return UserService(get_cart_service())


def get_order_service() -> OrderService:
    """Get order service instance."""
    return OrderService(get_cart_service())
