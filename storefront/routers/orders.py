"""Orders API router."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.auth import Identity, verify_token
from storefront.database import get_db
from storefront.dependencies import get_order_service
from storefront.schemas import CreateOrderRequest, MessageResponse, OrdersListResponse

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=MessageResponse)
async def create_order(
    request: CreateOrderRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    order_service = Depends(get_order_service)
):
    """Checkout the cart as a cash-on-delivery order - requires authentication."""
    return order_service.create_order(
        db=db,
        user_id=identity.user_id,
        address=request.address,
        email=request.email,
        contact=request.contact,
        cart_total=request.cart_total
    )


@router.get("/user-orders", response_model=OrdersListResponse)
async def get_user_orders(
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    order_service = Depends(get_order_service)
):
    """Get user's orders - requires authentication."""
    return order_service.get_user_orders(db, identity.user_id)
