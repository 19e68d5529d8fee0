"""Tests for password hashing and access tokens."""
import jwt
import pytest

from storefront.config import JWT_ALGORITHM
from storefront.errors import AuthError
from storefront.security import (
    ROLE_ADMIN,
    ROLE_USER,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_is_not_the_password(self):
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert hashed.startswith("$2")

    def test_hashes_are_salted(self):
        assert hash_password("s3cret!") != hash_password("s3cret!")

    def test_verify(self):
        hashed = hash_password("s3cret!")
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_stored_hash_never_verifies(self):
        assert not verify_password("s3cret!", "U2FsdGVkX1+legacy-cipher-text")


class TestAccessTokens:
    def test_token_carries_identity(self):
        payload = decode_access_token(create_access_token("user-1", ROLE_ADMIN))
        assert payload["user_id"] == "user-1"
        assert payload["role"] == ROLE_ADMIN

    def test_token_expires_after_one_day(self):
        payload = decode_access_token(create_access_token("user-1", ROLE_USER))
        assert payload["exp"] - payload["iat"] == 24 * 60 * 60

    def test_expired_token_rejected(self):
        token = create_access_token("user-1", ROLE_USER, ttl_seconds=-10)
        with pytest.raises(AuthError, match="expired"):
            decode_access_token(token)

    def test_token_signed_with_other_key_rejected(self):
        token = jwt.encode({"user_id": "user-1", "role": ROLE_ADMIN, "exp": 9999999999},
                           "not-the-server-key", algorithm=JWT_ALGORITHM)
        with pytest.raises(AuthError):
            decode_access_token(token)

    def test_garbage_token_rejected(self):
        with pytest.raises(AuthError):
            decode_access_token("not.a.token")
