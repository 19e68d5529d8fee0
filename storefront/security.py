"""Password hashing and access token primitives."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from storefront.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_SECRET, TOKEN_TTL_SECONDS
from storefront.errors import AuthError

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"

# bcrypt ignores (newer releases reject) input beyond 72 bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of the password."""
    hashed = bcrypt.hashpw(
        password.encode("utf-8")[:BCRYPT_MAX_BYTES],
        bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    )
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(user_id: str, role: str, ttl_seconds: int = TOKEN_TTL_SECONDS) -> str:
    """
    Sign an access token for a user.

    Args:
        user_id: User identifier
        role: Either "admin" or "user"
        ttl_seconds: Token lifetime

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry of an access token.

    Raises:
        AuthError: If the token is expired, tampered with or incomplete
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "user_id", "role"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthError("Token is not valid")

    if payload["role"] not in (ROLE_ADMIN, ROLE_USER):
        raise AuthError("Token is not valid")
    return payload
