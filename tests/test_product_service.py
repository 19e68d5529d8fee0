"""Tests for the catalog service."""
from datetime import datetime, timedelta

import pytest
from slugify import slugify

from storefront.errors import ForbiddenError, NotFoundError, ValidationError
from storefront.models import Product
from tests.helpers import make_product


class TestListProducts:
    def test_list_all(self, db, product_service, product, other_product):
        products = product_service.list_products(db)
        assert {p.id for p in products} == {product.id, other_product.id}

    def test_new_returns_two_most_recent(self, db, product_service):
        base = datetime(2024, 1, 1)
        for day, title in enumerate(["Oldest", "Middle", "Newer", "Newest"]):
            make_product(db, title=title, created_at=base + timedelta(days=day))

        products = product_service.list_products(db, new=True)

        assert [p.title for p in products] == ["Newest", "Newer"]

    def test_category_filter(self, db, product_service, product, other_product):
        products = product_service.list_products(db, category="men")
        assert [p.id for p in products] == [other_product.id]

    def test_unknown_category_is_not_found(self, db, product_service, product):
        with pytest.raises(NotFoundError):
            product_service.list_products(db, category="shoes")

    def test_empty_catalog_is_not_found(self, db, product_service):
        with pytest.raises(NotFoundError):
            product_service.list_products(db)


class TestGetProduct:
    def test_get(self, db, product_service, product):
        assert product_service.get_product(db, product.id).title == "Canvas Tote Bag"

    def test_unknown(self, db, product_service):
        with pytest.raises(NotFoundError):
            product_service.get_product(db, "missing")


class TestAdminMutations:
    def test_create_derives_slug_and_stamps_creator(self, db, product_service, admin):
        product = product_service.create_product(db, admin, {
            "title": "Wool Beanie Hat",
            "price": 19.0,
            "categories": ["accessories"],
        })

        assert product.slug == "wool-beanie-hat"
        assert product.listed_by == admin.user_id
        assert product.created_at is not None

    @pytest.mark.parametrize("fields", [{"title": "No price"}, {"price": 10.0}, {}])
    def test_create_requires_title_and_price(self, db, product_service, admin, fields):
        with pytest.raises(ValidationError):
            product_service.create_product(db, admin, fields)
        assert db.query(Product).count() == 0

    def test_create_requires_admin(self, db, product_service, shopper):
        with pytest.raises(ForbiddenError):
            product_service.create_product(db, shopper, {"title": "Hat", "price": 1.0})

    def test_update_rederives_slug(self, db, product_service, admin, product):
        updated = product_service.update_product(db, admin, product.id, {"title": "Big Tote"})
        assert updated.slug == "big-tote"
        assert updated.price == 24.0

    def test_update_without_title_keeps_slug(self, db, product_service, admin, product):
        updated = product_service.update_product(db, admin, product.id, {"price": 30.0})
        assert updated.slug == product.slug
        assert updated.price == 30.0

    @pytest.mark.parametrize("title", ["", "   "])
    def test_update_rejects_blank_title(self, db, product_service, admin, product, title):
        with pytest.raises(ValidationError):
            product_service.update_product(db, admin, product.id, {"title": title})
        db.refresh(product)
        assert product.title
        assert product.slug == slugify(product.title)

    def test_update_unknown(self, db, product_service, admin):
        with pytest.raises(NotFoundError):
            product_service.update_product(db, admin, "missing", {"price": 1.0})

    def test_delete(self, db, product_service, admin, product):
        product_service.delete_product(db, admin, product.id)
        assert db.query(Product).count() == 0

    def test_delete_unknown(self, db, product_service, admin):
        with pytest.raises(NotFoundError):
            product_service.delete_product(db, admin, "missing")

    def test_delete_requires_admin(self, db, product_service, shopper, product):
        with pytest.raises(ForbiddenError):
            product_service.delete_product(db, shopper, product.id)
