"""Tests for startup data."""

from datetime import timedelta
from decimal import Decimal

from teeshop.seed import DEMO_PASSWORD, DEMO_USERNAME, PRODUCTS


class TestSeedStore:
    def test_catalog(self, seeded_store):
        result = seeded_store.list_products()
        assert result.total == len(PRODUCTS) == 18
        first = seeded_store.get_product(1)
        assert first.name == "Classic White Tee"
        assert first.price == Decimal("29.99")

    def test_newest_is_last_seeded(self, seeded_store):
        from teeshop.catalog import ProductFilter

        newest = seeded_store.list_products(ProductFilter(sort="newest")).products[0]
        assert newest.id == 18

    def test_demo_user_can_log_in(self, seeded_store):
        user = seeded_store.authenticate(DEMO_USERNAME, DEMO_PASSWORD)
        assert user is not None
        assert user.email == "test@example.com"

    def test_demo_addresses(self, seeded_store):
        user = seeded_store.get_user_by_username(DEMO_USERNAME)
        names = [a.address_name for a in seeded_store.list_addresses(user.id)]
        assert names == ["Home", "Work"]
        assert seeded_store.get_default_address(user.id).address_name == "Home"

    def test_demo_cards(self, seeded_store):
        user = seeded_store.get_user_by_username(DEMO_USERNAME)
        cards = seeded_store.list_payment_methods(user.id)
        assert [c.card_number for c in cards] == ["4234", "5678"]
        assert seeded_store.get_default_payment_method(user.id).card_type == "visa"

    def test_demo_orders(self, seeded_store, now):
        user = seeded_store.get_user_by_username(DEMO_USERNAME)
        orders = seeded_store.list_orders(user.id)
        assert [o.status for o in orders] == ["delivered", "shipped", "processing"]

        delivered = orders[0]
        assert delivered.created_at == now - timedelta(days=30)
        assert delivered.delivered_at == delivered.created_at + timedelta(days=2)
        assert delivered.total == Decimal("108.56")
        assert sum(i.quantity for i in seeded_store.get_order_items(delivered.id)) == 3

    def test_most_recent_demo_order(self, seeded_store):
        user = seeded_store.get_user_by_username(DEMO_USERNAME)
        recent = seeded_store.get_most_recent_order(user.id)
        assert recent.order.payment_method == "PayPal"
        assert len(recent.items) == 2
