"""Authentication API router."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.dependencies import get_user_service
from storefront.schemas import LoginRequest, LoginResponse, RegisterRequest, UserResponse

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    user_service = Depends(get_user_service)
):
    """Register a new user. The response never includes the password."""
    return user_service.register(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
        is_admin=request.is_admin
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    user_service = Depends(get_user_service)
):
    """Authenticate by email and password and return a 1-day access token."""
    return user_service.login(db, request.email, request.password)
