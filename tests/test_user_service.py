"""Tests for registration and login."""
import pytest

from storefront.errors import AuthError, ConflictError, NotFoundError, ValidationError
from storefront.models import Cart, User
from storefront.security import decode_access_token


def _register(user_service, db, **overrides):
    fields = {"username": "alice", "email": "alice@example.com", "password": "s3cret!"}
    fields.update(overrides)
    return user_service.register(db, **fields)


class TestRegister:
    def test_register_stores_hash_not_password(self, db, user_service):
        user = _register(user_service, db)

        stored = db.get(User, user.id)
        assert stored.username == "alice"
        assert stored.password_hash != "s3cret!"
        assert stored.is_admin is False

    def test_register_admin(self, db, user_service):
        user = _register(user_service, db, is_admin=True)
        assert user.is_admin is True

    @pytest.mark.parametrize("missing", ["username", "email", "password"])
    def test_missing_field(self, db, user_service, missing):
        with pytest.raises(ValidationError):
            _register(user_service, db, **{missing: None})
        assert db.query(User).count() == 0

    def test_blank_field(self, db, user_service):
        with pytest.raises(ValidationError):
            _register(user_service, db, username="")

    def test_duplicate_username(self, db, user_service):
        _register(user_service, db)
        with pytest.raises(ConflictError, match="Username"):
            _register(user_service, db, email="other@example.com", password="different")
        assert db.query(User).count() == 1

    def test_duplicate_email(self, db, user_service):
        _register(user_service, db)
        with pytest.raises(ConflictError, match="Email"):
            _register(user_service, db, username="bob", is_admin=True)
        assert db.query(User).count() == 1


class TestLogin:
    def test_login_issues_token_with_identity(self, db, user_service):
        user = _register(user_service, db, is_admin=True)

        result = user_service.login(db, "alice@example.com", "s3cret!")

        assert result["id"] == user.id
        assert result["is_admin"] is True
        assert "password" not in result and "password_hash" not in result
        payload = decode_access_token(result["access_token"])
        assert payload["user_id"] == user.id
        assert payload["role"] == "admin"

    def test_login_creates_empty_cart(self, db, user_service):
        user = _register(user_service, db)

        user_service.login(db, "alice@example.com", "s3cret!")

        cart = db.query(Cart).filter(Cart.user_id == user.id).one()
        assert cart.products == []

    def test_login_keeps_existing_cart(self, db, user_service, cart_service, product):
        user = _register(user_service, db)
        cart_service.add_item(db, user.id, product.id, None, None, None, 2)

        user_service.login(db, "alice@example.com", "s3cret!")

        carts = db.query(Cart).filter(Cart.user_id == user.id).all()
        assert len(carts) == 1
        assert carts[0].products[0]["quantity"] == 2

    def test_wrong_password(self, db, user_service):
        _register(user_service, db)
        with pytest.raises(AuthError):
            user_service.login(db, "alice@example.com", "wrong")

    def test_unknown_email(self, db, user_service):
        with pytest.raises(NotFoundError):
            user_service.login(db, "nobody@example.com", "s3cret!")

    def test_missing_fields(self, db, user_service):
        with pytest.raises(ValidationError):
            user_service.login(db, "alice@example.com", None)


class TestGetUser:
    def test_unknown_user(self, db, user_service):
        with pytest.raises(NotFoundError):
            user_service.get_user(db, "missing")
