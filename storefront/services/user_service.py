"""User registration and login."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from opentelemetry import trace

from storefront.errors import AuthError, ConflictError, NotFoundError, ValidationError
from storefront.models import User
from storefront.monitoring import auth_attempts_counter, auth_failures_counter, registrations_counter
from storefront.security import ROLE_ADMIN, ROLE_USER, create_access_token, hash_password, verify_password
from storefront.services.cart_service import CartService

logger = logging.getLogger(__name__)


class UserService:
    """Service for the identity store and token issuance."""

    def __init__(self, cart_service: CartService):
        """
        Initialize user service.

        Args:
            cart_service: Cart service, used to give every logged-in user a cart
        """
        self.cart_service = cart_service
        self.tracer = trace.get_tracer(__name__)

    def register(
        self,
        db: Session,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        is_admin: bool = False
    ) -> User:
        """
        Register a new user.

        Returns:
            The persisted user

        Raises:
            ValidationError: If username, email or password is missing
            ConflictError: If the username or email is already taken
        """
        if not username or not email or not password:
            raise ValidationError("All fields are mandatory")

        with self.tracer.start_as_current_span("db.query.find_user") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "users")

            if db.query(User).filter(User.username == username).first():
                raise ConflictError("Username already taken")
            if db.query(User).filter(User.email == email).first():
                raise ConflictError("Email already taken")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            is_admin=is_admin
        )

        with self.tracer.start_as_current_span("db.query.insert_user") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "users")
            try:
                db.add(user)
                db.commit()
            except IntegrityError:
                # Lost a race against a concurrent registration
                db.rollback()
                raise ConflictError("Username or email already taken")
            db.refresh(user)
            db_span.set_attribute("user.id", user.id)

        registrations_counter.add(1, {"role": ROLE_ADMIN if is_admin else ROLE_USER})
        logger.info("User registered", extra={
            "user_id": user.id,
            "username": username,
            "is_admin": is_admin
        })
        return user

    def login(self, db: Session, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        Authenticate a user and issue an access token.

        Creates an empty cart for the user if they have none.

        Returns:
            User details with `access_token`

        Raises:
            ValidationError: If email or password is missing
            NotFoundError: If no user has this email
            AuthError: If the password does not match
        """
        auth_attempts_counter.add(1, {"type": "login"})

        if not email or not password:
            raise ValidationError("All fields are mandatory")

        user = db.query(User).filter(User.email == email).first()
        if not user:
            auth_failures_counter.add(1, {"reason": "unknown_email"})
            logger.warning("Login failed: No such user", extra={"email": email})
            raise NotFoundError("No such user")

        if not verify_password(password, user.password_hash):
            auth_failures_counter.add(1, {"reason": "invalid_password"})
            logger.warning("Login failed: Invalid password", extra={"user_id": user.id})
            raise AuthError("Invalid password")

        role = ROLE_ADMIN if user.is_admin else ROLE_USER
        access_token = create_access_token(user.id, role)

        self.cart_service.ensure_cart(db, user.id)

        logger.info("User logged in successfully", extra={
            "user_id": user.id,
            "role": role
        })

        return {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "is_admin": user.is_admin,
            "access_token": access_token
        }

    def get_user(self, db: Session, user_id: str) -> User:
        """
        Fetch a user by id.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
