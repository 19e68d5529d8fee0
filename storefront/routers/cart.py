"""Cart API router.

Every endpoint works on the caller's own cart; the user id always comes from
the verified token, never from the request.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.auth import Identity, verify_token
from storefront.database import get_db
from storefront.dependencies import get_cart_service
from storefront.schemas import (
    AddToCartRequest,
    CartResponse,
    MessageResponse,
    RemoveCartItemRequest,
    UpdateCartItemQuantityRequest,
)

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    cart_service = Depends(get_cart_service)
):
    """Add item to cart - requires authentication."""
    return cart_service.add_item(
        db=db,
        user_id=identity.user_id,
        product_id=request.product_id,
        title=request.title,
        price=request.price,
        image=request.image,
        quantity=request.selected_quantity
    )


@router.get("/get-cart", response_model=CartResponse)
async def get_cart(
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    cart_service = Depends(get_cart_service)
):
    """Get user's cart - requires authentication."""
    return cart_service.get_cart(db, identity.user_id)


@router.post("/remove-cart-item", response_model=CartResponse)
async def remove_cart_item(
    request: RemoveCartItemRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    cart_service = Depends(get_cart_service)
):
    """Remove a product from the cart - requires authentication."""
    return cart_service.remove_item(db, identity.user_id, request.product_id)


@router.post("/update-cart-item-quantity", response_model=CartResponse)
async def update_cart_item_quantity(
    request: UpdateCartItemQuantityRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    cart_service = Depends(get_cart_service)
):
    """Set a product's quantity in the cart - requires authentication."""
    return cart_service.update_quantity(
        db, identity.user_id, request.product_id, request.quantity
    )


@router.delete("/delete-cart", response_model=MessageResponse)
async def delete_cart(
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    cart_service = Depends(get_cart_service)
):
    """Delete the whole cart - requires authentication."""
    cart_service.delete_cart(db, identity.user_id)
    return {"message": "Cart deleted successfully"}
