"""Users API router."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.auth import Identity, authorize_owner_or_admin, verify_token
from storefront.database import get_db
from storefront.dependencies import get_user_service
from storefront.schemas import UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(verify_token),
    user_service = Depends(get_user_service)
):
    """Get a user's public record - the user themselves or an admin."""
    authorize_owner_or_admin(identity, user_id)
    return user_service.get_user(db, user_id)
