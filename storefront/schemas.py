"""Pydantic schemas for request/response validation.

Request bodies use the camelCase field names clients already send
(`productId`, `selectedQuantity`, `cartTotal`, `isAdmin`); snake_case names
are accepted too.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestModel(BaseModel):
    """Base for request bodies."""
    model_config = ConfigDict(populate_by_name=True)


# Auth

class RegisterRequest(RequestModel):
    """Schema for user registration."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    is_admin: bool = Field(False, alias="isAdmin")


class LoginRequest(RequestModel):
    """Schema for login."""
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Public user record, never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    is_admin: bool
    created_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """Schema for login response."""
    id: str
    username: str
    email: str
    is_admin: bool
    access_token: str
    token_type: str = "bearer"


# Catalog

class ProductCreate(RequestModel):
    """Schema for creating a product. Title and price are checked by the service."""
    title: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    image: Optional[str] = None
    categories: List[str] = Field(default_factory=list)


class ProductUpdate(RequestModel):
    """Schema for a partial product update."""
    title: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    image: Optional[str] = None
    categories: Optional[List[str]] = None


class ProductResponse(BaseModel):
    """Schema for product response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    description: Optional[str] = None
    price: float
    image: Optional[str] = None
    categories: List[str]
    listed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Cart

class AddToCartRequest(RequestModel):
    """Schema for add to cart request."""
    product_id: Optional[str] = Field(None, alias="productId")
    title: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    selected_quantity: int = Field(alias="selectedQuantity")


class RemoveCartItemRequest(RequestModel):
    """Schema for removing a line item."""
    product_id: Optional[str] = Field(None, alias="productId")


class UpdateCartItemQuantityRequest(RequestModel):
    """Schema for overwriting a line item's quantity."""
    product_id: Optional[str] = Field(None, alias="productId")
    quantity: int


class LineItem(BaseModel):
    """A product reference with display fields captured at add time."""
    product_id: str
    title: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = None
    quantity: int


class CartResponse(BaseModel):
    """Schema for cart response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    products: List[LineItem]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    """Plain acknowledgment."""
    message: str


# Orders

class CreateOrderRequest(RequestModel):
    """Schema for checkout request."""
    address: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    cart_total: Optional[float] = Field(None, alias="cartTotal")


class PaymentIntent(BaseModel):
    """Payment descriptor stored on an order."""
    id: str
    method: str
    amount: float
    status: str
    created: datetime
    currency: str


class OrderLineItem(LineItem):
    """Order line item with the referenced product resolved, if it still exists."""
    product: Optional[ProductResponse] = None


class OrderResponse(BaseModel):
    """Schema for order response."""
    id: str
    products: List[OrderLineItem]
    payment_intent: PaymentIntent
    order_by: Optional[UserResponse] = None
    address: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    order_status: str
    created_at: Optional[datetime] = None


class OrdersListResponse(BaseModel):
    """Schema for orders list response."""
    orders: List[OrderResponse]
    message: Optional[str] = None
