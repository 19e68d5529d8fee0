"""Products API router."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.auth import Identity, require_admin
from storefront.database import get_db
from storefront.dependencies import get_product_service
from storefront.schemas import MessageResponse, ProductCreate, ProductResponse, ProductUpdate

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductResponse])
async def list_products(
    new: bool = Query(False, description="Only the most recently added products"),
    category: Optional[str] = Query(None, description="Only products in this category"),
    db: Session = Depends(get_db),
    product_service = Depends(get_product_service)
):
    """
    List the catalog. Public.

    Examples:
    - GET /products?new=true - the latest arrivals
    - GET /products?category=bags - everything tagged "bags"

    An empty result is reported as 404.
    """
    return product_service.list_products(db, new=new, category=category)


@router.get("/get/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    product_service = Depends(get_product_service)
):
    """Get a single product. Public."""
    return product_service.get_product(db, product_id)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    request: ProductCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
    product_service = Depends(get_product_service)
):
    """Create a product - admin only."""
    return product_service.create_product(db, identity, request.model_dump())


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    request: ProductUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
    product_service = Depends(get_product_service)
):
    """Partially update a product - admin only."""
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    return product_service.update_product(db, identity, product_id, fields)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
    product_service = Depends(get_product_service)
):
    """Delete a product - admin only."""
    product_service.delete_product(db, identity, product_id)
    return {"message": "Product deleted successfully"}
