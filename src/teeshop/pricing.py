"""Order totals: the one formula used by cart, checkout and order creation."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from .models import CENT, CartLine, money_to_json

SHIPPING_FLAT = Decimal("5.99")
TAX_RATE = Decimal("0.08")


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    """Derived money fields of a cart or order."""

    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    item_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": money_to_json(self.subtotal),
            "shipping": money_to_json(self.shipping),
            "tax": money_to_json(self.tax),
            "total": money_to_json(self.total),
            "item_count": self.item_count,
        }


def compute_totals(lines: Iterable[CartLine]) -> OrderTotals:
    """
    Compute subtotal, flat shipping, 8% tax and total for cart lines.

    subtotal = sum(price * quantity), tax = round(subtotal * 0.08) and
    total = subtotal + shipping + tax, all in cents. The total is the sum of
    the already-rounded parts so the displayed parts always add up.
    """
    lines = list(lines)
    subtotal = round_money(sum((line.line_total for line in lines), Decimal("0")))
    tax = round_money(subtotal * TAX_RATE)
    shipping = SHIPPING_FLAT
    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
        item_count=sum(line.quantity for line in lines),
    )
