"""Tests for order totals."""

from decimal import Decimal

import pytest

from teeshop.errors import InvalidInputError
from teeshop.models import CartLine, to_money
from teeshop.pricing import SHIPPING_FLAT, TAX_RATE, compute_totals, round_money


def line(price, quantity=1):
    return CartLine(product_id=1, name="Tee", price=price, quantity=quantity, size="M", color="Black")


class TestComputeTotals:
    def test_two_line_cart(self):
        totals = compute_totals([line(29.99, 2), line(34.99, 1)])
        assert totals.subtotal == Decimal("94.97")
        assert totals.shipping == Decimal("5.99")
        assert totals.tax == Decimal("7.60")
        assert totals.total == Decimal("108.56")
        assert totals.item_count == 3

    def test_empty_cart_still_charges_shipping(self):
        totals = compute_totals([])
        assert totals.subtotal == Decimal("0.00")
        assert totals.tax == Decimal("0.00")
        assert totals.total == SHIPPING_FLAT
        assert totals.item_count == 0

    def test_tax_rounds_to_cents(self):
        totals = compute_totals([line("19.99")])
        # 19.99 * 0.08 = 1.5992
        assert totals.tax == Decimal("1.60")
        assert totals.total == Decimal("27.58")

    def test_total_is_sum_of_rounded_parts(self):
        totals = compute_totals([line("12.34", 3), line("0.99", 7)])
        assert totals.total == totals.subtotal + totals.shipping + totals.tax

    def test_float_prices_have_no_binary_drift(self):
        totals = compute_totals([line(0.1, 3)])
        assert totals.subtotal == Decimal("0.30")

    def test_sub_cent_unit_price_rounds_only_the_subtotal(self):
        totals = compute_totals([line("0.125", 8)])
        assert totals.subtotal == Decimal("1.00")
        assert totals.tax == Decimal("0.08")
        assert totals.total == Decimal("7.07")

    def test_to_dict_uses_json_numbers(self):
        data = compute_totals([line(29.99, 2), line(34.99, 1)]).to_dict()
        assert data == {
            "subtotal": 94.97,
            "shipping": 5.99,
            "tax": 7.6,
            "total": 108.56,
            "item_count": 3,
        }

    def test_constants(self):
        assert TAX_RATE == Decimal("0.08")
        assert round_money(Decimal("1.005")) == Decimal("1.01")


class TestCartLine:
    def test_line_total(self):
        assert line("9.50", 4).line_total == Decimal("38.00")

    def test_unit_price_is_kept_exactly(self):
        assert line(0.125).price == Decimal("0.125")

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_rejects_bad_quantity(self, quantity):
        with pytest.raises(InvalidInputError):
            line("10.00", quantity)

    @pytest.mark.parametrize("price", ["-1", "abc", "NaN", True])
    def test_rejects_bad_price(self, price):
        with pytest.raises(InvalidInputError):
            line(price)

    def test_to_money_accepts_int_and_str(self):
        assert to_money(5) == Decimal("5.00")
        assert to_money("29.999") == Decimal("30.00")
