"""Authentication utilities."""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from storefront.errors import AuthError, ForbiddenError
from storefront.monitoring import auth_attempts_counter, auth_failures_counter
from storefront.security import ROLE_ADMIN, decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The (user id, role) pair derived from a verified token."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def bearer_credentials(authorization: Optional[str]) -> Optional[str]:
    """Token from a `Bearer <token>` header (scheme is case-insensitive), else None."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def parse_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract the token from an `Authorization: Bearer <token>` header.

    Raises:
        AuthError: If the header is missing or malformed
    """
    if authorization is None:
        auth_failures_counter.add(1, {"reason": "missing_header"})
        logger.warning("Authentication failed: Missing authorization header")
        raise AuthError("You are not authenticated")

    token = bearer_credentials(authorization)
    if token is None:
        auth_failures_counter.add(1, {"reason": "invalid_format"})
        logger.warning("Authentication failed: Invalid authorization header format", extra={
            "auth_header": authorization[:20] + "..." if len(authorization) > 20 else authorization
        })
        raise AuthError("Invalid authorization header format")

    return token


def authenticate(authorization: Optional[str]) -> Identity:
    """
    Verify a bearer token and derive the caller's identity.

    Args:
        authorization: Authorization header value

    Returns:
        Identity embedded in the token

    Raises:
        AuthError: If the header is missing, malformed, or the token is invalid/expired
    """
    auth_attempts_counter.add(1, {"type": "bearer_token"})

    token = parse_bearer_token(authorization)
    try:
        payload = decode_access_token(token)
    except AuthError as e:
        auth_failures_counter.add(1, {"reason": "invalid_token"})
        logger.warning("Authentication failed: Invalid token", extra={"error": e.message})
        raise

    identity = Identity(user_id=payload["user_id"], role=payload["role"])
    logger.debug("Authentication successful", extra={"user_id": identity.user_id})
    return identity


def authorize_admin(identity: Identity) -> None:
    """Raise ForbiddenError unless the identity carries the admin role."""
    if not identity.is_admin:
        logger.warning("Admin access denied", extra={"user_id": identity.user_id})
        raise ForbiddenError("Only admin has access")


def authorize_owner_or_admin(identity: Identity, resource_owner_id: str) -> None:
    """Raise ForbiddenError unless the identity owns the resource or is an admin."""
    if identity.user_id != resource_owner_id and not identity.is_admin:
        logger.warning("Owner access denied", extra={
            "user_id": identity.user_id,
            "resource_owner_id": resource_owner_id
        })
        raise ForbiddenError("You do not have permission")


def verify_token(authorization: Optional[str] = Header(None)) -> Identity:
    """FastAPI dependency: the authenticated caller."""
    return authenticate(authorization)


def require_admin(identity: Identity = Depends(verify_token)) -> Identity:
    """FastAPI dependency: the authenticated caller, who must be an admin."""
    authorize_admin(identity)
    return identity
