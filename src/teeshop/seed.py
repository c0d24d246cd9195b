"""Startup data: the t-shirt catalog and a demonstration account."""

import logging
import os
from datetime import timedelta
from typing import Any

from .models import CartLine, User
from .store import Store

logger = logging.getLogger(__name__)

DEMO_USERNAME = "testuser"
DEMO_PASSWORD = "password123"

# Username that stands in for an authenticated session
SESSION_USERNAME = os.environ.get("TEESHOP_DEMO_USER", DEMO_USERNAME)

_IMG = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&w=500&q=80"
_COTTON = "100% Cotton"
_WASH = "Machine wash cold. Tumble dry low."

PRODUCTS: list[dict[str, Any]] = [
    {
        "name": "Classic White Tee",
        "description": "A pristine white t-shirt that serves as the perfect base for any outfit. Made from soft, breathable cotton with a relaxed fit.",
        "price": "29.99",
        "category": "Chill Mode Classics",
        "image_url": _IMG.format("1576566588028-4147f3842f27"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["White", "Black", "Gray", "Blue"],
        "available_sizes": ["S", "M", "L", "XL", "XXL"],
        "gender": "unisex",
    },
    {
        "name": "Ocean Waves Graphic",
        "description": "A refreshing graphic tee featuring a calming ocean wave design. Made from soft, breathable cotton with a relaxed fit for all-day comfort.",
        "price": "34.99",
        "category": "Glacier Graphics",
        "image_url": _IMG.format("1521572163474-6864f9cf17ab"),
        "images": [
            _IMG.format("1521572163474-6864f9cf17ab"),
            _IMG.format("1618354691438-25bc04584c23"),
            _IMG.format("1503342217505-b0a15ec3261c"),
        ],
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Blue", "White", "Navy"],
        "available_sizes": ["XS", "S", "M", "L", "XL"],
        "gender": "men",
    },
    {
        "name": "Summer Stripes",
        "description": "A casual striped t-shirt perfect for summer days. The lightweight fabric keeps you cool while looking stylish.",
        "price": "32.99",
        "category": "Frosty Fresh Tees",
        "image_url": _IMG.format("1554568218-0f1715e72254"),
        "materials": "95% Cotton, 5% Spandex",
        "care_instructions": "Machine wash cold. Hang dry.",
        "available_colors": ["Blue", "Red", "Green"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "women",
    },
    {
        "name": "Retro Black",
        "description": "A vintage-inspired black t-shirt with a subtle worn-in look. Features a slightly looser fit for that authentic retro feel.",
        "price": "27.99",
        "category": "Frozen Vintage",
        "image_url": _IMG.format("1586790170083-2f9ceadc732d"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Black", "Gray", "White"],
        "available_sizes": ["S", "M", "L", "XL", "XXL"],
        "gender": "unisex",
    },
    {
        "name": "Soft Touch Premium",
        "description": "Our premium t-shirt made from the finest cotton blend for an incredibly soft feel.",
        "price": "39.99",
        "category": "Icy Luxe",
        "image_url": _IMG.format("1618354691792-d1d42acfd860"),
        "materials": "80% Cotton, 20% Modal",
        "care_instructions": "Machine wash cold on gentle cycle. Lay flat to dry.",
        "available_colors": ["Gray", "Black", "Navy", "Purple"],
        "available_sizes": ["S", "M", "L", "XL", "XXL", "3XL"],
        "gender": "men",
    },
    {
        "name": "Urban Explorer",
        "description": "A street-style t-shirt with modern cut and subtle details.",
        "price": "36.99",
        "category": "Arctic Streetwear",
        "image_url": _IMG.format("1529374255404-311a2a4f1fd9"),
        "materials": "90% Cotton, 10% Polyester",
        "care_instructions": _WASH,
        "available_colors": ["Black", "Gray", "Orange"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "women",
    },
    {
        "name": "Easy Blue",
        "description": "A comfortable blue t-shirt that goes with everything.",
        "price": "29.99",
        "category": "Chill Mode Classics",
        "image_url": _IMG.format("1503341733017-1901578f9f1e"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Blue", "Navy", "Light Blue"],
        "available_sizes": ["S", "M", "L", "XL", "XXL"],
        "gender": "men",
    },
    {
        "name": "Mountain Range",
        "description": "A graphic t-shirt featuring a stunning mountain landscape.",
        "price": "34.99",
        "category": "Glacier Graphics",
        "image_url": _IMG.format("1622445275576-721325763afe"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Gray", "Green", "Brown"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "unisex",
    },
    {
        "name": "Minimalist Logo Tee",
        "description": "A clean, minimalist design with our subtle logo embroidery.",
        "price": "32.99",
        "category": "Frosty Fresh Tees",
        "image_url": _IMG.format("1574180566232-aaad1b5b8450"),
        "materials": "100% Organic Cotton",
        "care_instructions": _WASH,
        "available_colors": ["White", "Black", "Gray", "Sand"],
        "available_sizes": ["XS", "S", "M", "L", "XL", "XXL"],
        "gender": "unisex",
    },
    {
        "name": "Heavyweight Box Tee",
        "description": "Premium thick cotton construction with a boxy fit for a contemporary silhouette.",
        "price": "37.99",
        "category": "Arctic Streetwear",
        "image_url": _IMG.format("1596755094514-f87e34085b2c"),
        "materials": "100% Heavyweight Cotton",
        "care_instructions": _WASH,
        "available_colors": ["Black", "White", "Charcoal", "Olive"],
        "available_sizes": ["S", "M", "L", "XL", "XXL"],
        "gender": "unisex",
    },
    {
        "name": "Tech Performance Tee",
        "description": "Technical fabric that wicks moisture and resists odors. Perfect for active lifestyles.",
        "price": "42.99",
        "category": "Chill Mode Classics",
        "image_url": _IMG.format("1604006852748-903fccb73815"),
        "materials": "92% Polyester, 8% Elastane",
        "care_instructions": _WASH,
        "available_colors": ["Gray", "Black", "Navy", "Red"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "unisex",
    },
    {
        "name": "Abstract Art Tee",
        "description": "Showcase your appreciation for modern art with this abstract print.",
        "price": "38.99",
        "category": "Glacier Graphics",
        "image_url": _IMG.format("1618354691438-25bc04584c23"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["White", "Black"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "unisex",
    },
    {
        "name": "Vintage Wash Tee",
        "description": "Pre-washed for a perfectly broken-in feel and vintage appearance from day one.",
        "price": "28.99",
        "category": "Frozen Vintage",
        "image_url": _IMG.format("1565366896067-2a9fcc839d10"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Washed Black", "Washed Blue", "Washed Red"],
        "available_sizes": ["S", "M", "L", "XL", "XXL"],
        "gender": "unisex",
    },
    {
        "name": "Embroidered Detail Tee",
        "description": "Subtle embroidered details add texture and interest to this premium everyday tee.",
        "price": "36.99",
        "category": "Icy Luxe",
        "image_url": _IMG.format("1603251578711-3290abbc94b4"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["White", "Black", "Beige"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "unisex",
    },
    {
        "name": "Sunset Gradient Tee",
        "description": "Vibrant sunset gradient print that brings summer vibes all year round.",
        "price": "31.99",
        "category": "Glacier Graphics",
        "image_url": _IMG.format("1529374255404-311a2a4f1fd9"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Orange/Pink", "Blue/Purple"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "unisex",
    },
    {
        "name": "Urban Skyline Tee",
        "description": "Showcase your urban spirit with this detailed city skyline graphic design.",
        "price": "33.99",
        "category": "Glacier Graphics",
        "image_url": _IMG.format("1553859943-a02c5418b798"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Gray", "Black", "White"],
        "available_sizes": ["S", "M", "L", "XL"],
        "gender": "unisex",
    },
    {
        "name": "Cropped Relaxed Tee",
        "description": "Modern cropped silhouette with dropped shoulders for a relaxed, effortless look.",
        "price": "27.99",
        "category": "Arctic Streetwear",
        "image_url": _IMG.format("1583744946564-b52ac1c389c8"),
        "materials": "95% Cotton, 5% Elastane",
        "care_instructions": _WASH,
        "available_colors": ["White", "Black", "Pink", "Blue"],
        "available_sizes": ["XS", "S", "M", "L"],
        "gender": "women",
    },
    {
        "name": "Winter Mountain Tee",
        "description": "Cozy long sleeve tee with a snow-capped mountain print.",
        "price": "32.99",
        "category": "Glacier Graphics",
        "image_url": _IMG.format("1613687114003-1e9f908c1f85"),
        "materials": _COTTON,
        "care_instructions": _WASH,
        "available_colors": ["Blue", "White", "Gray"],
        "available_sizes": ["S", "M", "L", "XL", "XXL"],
        "gender": "unisex",
    },
]


def seed_products(store: Store) -> int:
    """
    Load the fixed catalog.

    Products get created_at one minute apart in list order, so "newest"
    puts the last entry first.
    """
    start = store.now() - timedelta(minutes=len(PRODUCTS))
    for i, data in enumerate(PRODUCTS):
        store.create_product(created_at=start + timedelta(minutes=i), **data)
    return len(PRODUCTS)


def seed_demo_user(store: Store) -> User:
    """Create the stand-in session user with two addresses and two cards."""
    user = store.create_user(
        username=DEMO_USERNAME,
        password=DEMO_PASSWORD,
        email="test@example.com",
        name="Test User",
        phone="555-123-4567",
    )
    store.create_address(
        user.id,
        address_name="Home",
        is_default=True,
        first_name="Test",
        last_name="User",
        address="123 Test Street",
        city="Test City",
        state="TS",
        zip_code="12345",
        country="Testland",
        phone="555-123-4567",
    )
    store.create_address(
        user.id,
        address_name="Work",
        is_default=False,
        first_name="Test",
        last_name="User",
        address="456 Office Building",
        city="Business City",
        state="BC",
        zip_code="67890",
        country="Testland",
        phone="555-987-6543",
    )
    store.create_payment_method(
        user.id,
        card_name="Visa Card",
        cardholder_name="Test User",
        card_number="4234",
        card_type="visa",
        expiry_month="12",
        expiry_year="2025",
        is_default=True,
    )
    store.create_payment_method(
        user.id,
        card_name="Master Card",
        cardholder_name="Test User",
        card_number="5678",
        card_type="mastercard",
        expiry_month="06",
        expiry_year="2026",
        is_default=False,
    )
    return user


def _line(store: Store, product_id: int, color_idx: int, size_idx: int, quantity: int) -> CartLine:
    product = store.get_product(product_id)
    return CartLine(
        product_id=product.id,
        name=product.name,
        price=product.price,
        quantity=quantity,
        size=product.available_sizes[size_idx],
        color=product.available_colors[color_idx],
        image_url=product.image_url,
    )


def seed_demo_orders(store: Store, user: User) -> int:
    """
    Give the demo user an order history: one delivered a month ago, one
    shipped three days ago and one still processing from six hours ago.
    """
    addresses = store.list_addresses(user.id)
    products = store.list_products().products
    if not addresses or len(products) < 5:
        logger.warning("Skipping demo orders: need an address and at least 5 products")
        return 0

    shipping = addresses[0].to_shipping_address()
    now = store.now()
    p = [product.id for product in products]

    delivered = store.create_order(
        shipping,
        "Credit Card",
        [_line(store, p[0], 0, 1, 2), _line(store, p[1], 0, 1, 1)],
        user_id=user.id,
        created_at=now - timedelta(days=30),
    )
    store.update_order_status(
        delivered.id, "delivered", at=delivered.created_at + timedelta(days=2)
    )

    shipped = store.create_order(
        shipping,
        "Credit Card",
        [_line(store, p[2], 0, 2, 1)],
        user_id=user.id,
        created_at=now - timedelta(days=3),
    )
    store.update_order_status(shipped.id, "shipped")

    store.create_order(
        shipping,
        "PayPal",
        [_line(store, p[3], 0, 2, 1), _line(store, p[4], 1, 2, 1)],
        user_id=user.id,
        created_at=now - timedelta(hours=6),
    )
    return 3


def seed_store(store: Store) -> Store:
    """Populate an empty store with the catalog, demo user and order history."""
    product_count = seed_products(store)
    user = seed_demo_user(store)
    order_count = seed_demo_orders(store, user)
    logger.info(
        "Seeded %d products, demo user '%s' and %d orders",
        product_count,
        user.username,
        order_count,
    )
    return store
