"""Pytest fixtures for teeshop tests."""

from datetime import datetime, timedelta, timezone

import pytest

from teeshop.seed import seed_store
from teeshop.store import Store

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """The fixed time every test store reports."""
    return FIXED_NOW


@pytest.fixture
def store():
    """An empty store with a fixed clock."""
    return Store(clock=lambda: FIXED_NOW)


@pytest.fixture
def seeded_store(store):
    """A store holding the startup catalog, demo user and demo orders."""
    return seed_store(store)


@pytest.fixture
def user(store):
    """A registered user with no addresses or cards."""
    return store.create_user(username="alice", password="secret", email="alice@example.com")


@pytest.fixture
def catalog_store(store):
    """A store with 20 products, created one minute apart, priced 10.00..29.00."""
    for i in range(20):
        store.create_product(
            name=f"Tee {i + 1}",
            price=f"{10 + i}.00",
            category="Graphic" if i % 2 else "Classic",
            image_url=f"https://img.example/{i + 1}.jpg",
            available_colors=["Black", "White"] if i % 3 else ["Red"],
            available_sizes=["S", "M", "L"],
            gender=("men", "women", "unisex")[i % 3],
            in_stock=i != 19,
            created_at=FIXED_NOW + timedelta(minutes=i),
        )
    return store


@pytest.fixture
def address_data():
    """Fields for a valid address."""
    return {
        "address_name": "Home",
        "first_name": "Alice",
        "last_name": "Smith",
        "address": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "USA",
        "phone": "555-0100",
    }


@pytest.fixture
def card_data():
    """Fields for a valid payment method."""
    return {
        "card_name": "Personal",
        "cardholder_name": "Alice Smith",
        "card_number": "4242",
        "card_type": "visa",
        "expiry_month": "12",
        "expiry_year": "2030",
    }


@pytest.fixture
def shipping_info():
    return {
        "first_name": "Alice",
        "last_name": "Smith",
        "address": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "USA",
        "email": "alice@example.com",
    }


@pytest.fixture
def cart_items():
    """Two lines totalling 94.97 before shipping and tax."""
    return [
        {
            "product_id": 1,
            "name": "Classic White Tee",
            "price": 29.99,
            "quantity": 2,
            "size": "M",
            "color": "White",
            "image_url": "https://img.example/1.jpg",
        },
        {
            "product_id": 2,
            "name": "Ocean Waves Graphic",
            "price": 34.99,
            "quantity": 1,
            "size": "L",
            "color": "Blue",
        },
    ]


@pytest.fixture
def api_client(seeded_store, monkeypatch):
    """Test client over a seeded store; the demo user is the session user."""
    from fastapi.testclient import TestClient

    from teeshop import api

    monkeypatch.setattr(api, "_store", seeded_store)
    monkeypatch.setattr(api, "DEMO_USERNAME", "testuser")
    return TestClient(api.app)
