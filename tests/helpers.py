"""Shared builders for tests."""
from storefront.models import Product


def make_product(db, title="Canvas Tote Bag", price=24.0, categories=("bags",), **fields):
    """Insert a product directly, bypassing the admin check."""
    slug = title.lower().replace(" ", "-")
    product = Product(
        title=title,
        slug=slug,
        price=price,
        image=f"https://cdn.example.com/{slug}.jpg",
        categories=list(categories),
        **fields
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def register(client, username="alice", email="alice@example.com", password="s3cret!", is_admin=False):
    """POST /auth/register and return the response body."""
    response = client.post(
        "/auth/register",
        json={"username": username, "email": email, "password": password, "isAdmin": is_admin},
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email="alice@example.com", password="s3cret!"):
    """POST /auth/login and return the Authorization header."""
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
