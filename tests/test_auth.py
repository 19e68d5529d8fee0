"""Tests for the auth gate: bearer parsing and role checks."""
import pytest

from storefront.auth import Identity, authenticate, authorize_admin, authorize_owner_or_admin
from storefront.errors import AuthError, ForbiddenError
from storefront.security import ROLE_ADMIN, ROLE_USER, create_access_token


class TestAuthenticate:
    def test_valid_bearer_token(self):
        token = create_access_token("user-1", ROLE_USER)
        identity = authenticate(f"Bearer {token}")
        assert identity == Identity(user_id="user-1", role=ROLE_USER)
        assert not identity.is_admin

    def test_missing_header(self):
        with pytest.raises(AuthError):
            authenticate(None)

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b", "abc"])
    def test_malformed_header(self, header):
        with pytest.raises(AuthError):
            authenticate(header)

    def test_invalid_token(self):
        with pytest.raises(AuthError):
            authenticate("Bearer definitely-not-a-jwt")


class TestAuthorization:
    def test_admin_passes_admin_check(self):
        authorize_admin(Identity(user_id="a", role=ROLE_ADMIN))

    def test_standard_user_fails_admin_check(self):
        with pytest.raises(ForbiddenError):
            authorize_admin(Identity(user_id="u", role=ROLE_USER))

    def test_owner_passes(self):
        authorize_owner_or_admin(Identity(user_id="u", role=ROLE_USER), "u")

    def test_admin_passes_for_any_owner(self):
        authorize_owner_or_admin(Identity(user_id="a", role=ROLE_ADMIN), "u")

    def test_other_user_forbidden(self):
        with pytest.raises(ForbiddenError):
            authorize_owner_or_admin(Identity(user_id="v", role=ROLE_USER), "u")
