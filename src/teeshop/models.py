"""Data models for teeshop."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import InvalidInputError

GENDERS = ("men", "women", "unisex")

ORDER_STATUSES = ("processing", "shipped", "delivered", "cancelled")

CENT = Decimal("0.01")


def _utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 with a Z suffix."""
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def to_amount(value: Any, field_name: str = "price") -> Decimal:
    """
    Convert a price given as str, int, float or Decimal to an exact Decimal.

    Floats go through str() so 29.99 stays 29.99 instead of its binary
    expansion. No rounding is applied.

    Raises:
        InvalidInputError: If the value is not a finite, non-negative number.
    """
    if isinstance(value, bool):
        raise InvalidInputError(field_name, "must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(field_name, f"not a number: {value!r}")
    if not amount.is_finite():
        raise InvalidInputError(field_name, "must be finite")
    if amount < 0:
        raise InvalidInputError(field_name, "must not be negative")
    return amount


def to_money(value: Any, field_name: str = "price") -> Decimal:
    """Like to_amount(), then rounded half-up to cents."""
    return to_amount(value, field_name).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_json(value: Decimal) -> float:
    """Money leaves the process as a JSON number."""
    return float(value)


@dataclass
class User:
    """A registered shopper. Passwords are stored verbatim (demo only)."""

    id: int
    username: str
    password: str
    email: str | None = None
    name: str | None = None
    phone: str | None = None
    created_at: datetime = field(default_factory=_utc_now)

    EDITABLE_FIELDS = ("password", "email", "name", "phone")

    def to_dict(self) -> dict[str, Any]:
        # password intentionally left out
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "created_at": _iso(self.created_at),
        }


@dataclass
class Address:
    """A saved shipping address owned by one user."""

    id: int
    user_id: int
    address_name: str
    first_name: str
    last_name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: str
    is_default: bool = False
    created_at: datetime = field(default_factory=_utc_now)

    REQUIRED_FIELDS = (
        "address_name",
        "first_name",
        "last_name",
        "address",
        "city",
        "state",
        "zip_code",
        "country",
        "phone",
    )
    EDITABLE_FIELDS = REQUIRED_FIELDS + ("is_default",)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "address_name": self.address_name,
            "is_default": self.is_default,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "phone": self.phone,
            "created_at": _iso(self.created_at),
        }

    def to_shipping_address(self) -> "ShippingAddress":
        """Copy the postal part of this address into an order snapshot."""
        return ShippingAddress(
            first_name=self.first_name,
            last_name=self.last_name,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            country=self.country,
            phone=self.phone,
        )


@dataclass
class PaymentMethod:
    """A saved card. Only the last four digits of the number are kept."""

    id: int
    user_id: int
    card_name: str
    cardholder_name: str
    card_number: str  # last 4 digits
    card_type: str  # "visa", "mastercard", ...
    expiry_month: str
    expiry_year: str
    is_default: bool = False
    created_at: datetime = field(default_factory=_utc_now)

    REQUIRED_FIELDS = (
        "card_name",
        "cardholder_name",
        "card_number",
        "card_type",
        "expiry_month",
        "expiry_year",
    )
    EDITABLE_FIELDS = REQUIRED_FIELDS + ("is_default",)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "card_name": self.card_name,
            "cardholder_name": self.cardholder_name,
            "card_number": self.card_number,
            "card_type": self.card_type,
            "expiry_month": self.expiry_month,
            "expiry_year": self.expiry_year,
            "is_default": self.is_default,
            "created_at": _iso(self.created_at),
        }


@dataclass
class Product:
    """A t-shirt in the catalog."""

    id: int
    name: str
    price: Decimal
    category: str
    image_url: str
    description: str | None = None
    images: list[str] | None = None
    materials: str | None = None
    care_instructions: str | None = None
    in_stock: bool = True
    available_colors: list[str] = field(default_factory=list)
    available_sizes: list[str] = field(default_factory=list)  # display order
    gender: str = "unisex"
    created_at: datetime = field(default_factory=_utc_now)

    EDITABLE_FIELDS = (
        "name",
        "price",
        "category",
        "image_url",
        "description",
        "images",
        "materials",
        "care_instructions",
        "in_stock",
        "available_colors",
        "available_sizes",
        "gender",
    )

    def __post_init__(self) -> None:
        self.price = to_money(self.price)
        if self.gender not in GENDERS:
            raise InvalidInputError(
                "gender", f"expected one of {', '.join(GENDERS)}, got '{self.gender}'"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money_to_json(self.price),
            "category": self.category,
            "image_url": self.image_url,
            "images": list(self.images) if self.images is not None else None,
            "materials": self.materials,
            "care_instructions": self.care_instructions,
            "in_stock": self.in_stock,
            "available_colors": list(self.available_colors),
            "available_sizes": list(self.available_sizes),
            "gender": self.gender,
            "created_at": _iso(self.created_at),
        }


@dataclass
class ShippingAddress:
    """Postal address copied by value into an order."""

    first_name: str
    last_name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: str | None = None
    email: str | None = None

    REQUIRED_FIELDS = (
        "first_name",
        "last_name",
        "address",
        "city",
        "state",
        "zip_code",
        "country",
    )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }
        if self.phone is not None:
            result["phone"] = self.phone
        if self.email is not None:
            result["email"] = self.email
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], field_prefix: str = "shipping_info") -> "ShippingAddress":
        """
        Build a snapshot from a caller-supplied mapping.

        Raises:
            InvalidInputError: If a required field is missing or blank.
        """
        for name in cls.REQUIRED_FIELDS:
            value = data.get(name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidInputError(f"{field_prefix}.{name}", "is required")
        return cls(
            first_name=data["first_name"],
            last_name=data["last_name"],
            address=data["address"],
            city=data["city"],
            state=data["state"],
            zip_code=data["zip_code"],
            country=data["country"],
            phone=data.get("phone"),
            email=data.get("email"),
        )


@dataclass
class CartLine:
    """
    One line of a cart as submitted by the caller at checkout.

    The unit price is kept exactly as given; only derived totals are rounded.
    """

    product_id: int
    name: str
    price: Decimal
    quantity: int
    size: str
    color: str
    image_url: str | None = None

    def __post_init__(self) -> None:
        self.price = to_amount(self.price)
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidInputError("quantity", "must be an integer")
        if self.quantity < 1:
            raise InvalidInputError("quantity", "must be at least 1")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLine":
        for name in ("product_id", "name", "price", "quantity", "size", "color"):
            if data.get(name) is None:
                raise InvalidInputError(f"cart_items.{name}", "is required")
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            price=data["price"],
            quantity=data["quantity"],
            size=data["size"],
            color=data["color"],
            image_url=data.get("image_url"),
        )


@dataclass
class OrderItem:
    """A purchased line. Name, price, size, color and image are snapshots."""

    id: int
    order_id: int
    product_id: int
    name: str
    price: Decimal  # unit price at purchase time
    quantity: int
    size: str
    color: str
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "name": self.name,
            "price": money_to_json(self.price),
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
            "image_url": self.image_url,
        }


@dataclass
class Order:
    """A placed order with derived totals."""

    id: int
    order_number: str
    status: str
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    shipping_address: ShippingAddress
    payment_method: str  # label, e.g. "Credit Card"
    estimated_delivery_date: datetime
    created_at: datetime
    user_id: int | None = None  # None for guest checkout
    billing_address: ShippingAddress | None = None
    delivered_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "order_number": self.order_number,
            "status": self.status,
            "subtotal": money_to_json(self.subtotal),
            "shipping": money_to_json(self.shipping),
            "tax": money_to_json(self.tax),
            "total": money_to_json(self.total),
            "shipping_address": self.shipping_address.to_dict(),
            "billing_address": (
                self.billing_address.to_dict() if self.billing_address else None
            ),
            "payment_method": self.payment_method,
            "estimated_delivery_date": _iso(self.estimated_delivery_date),
            "delivered_at": _iso(self.delivered_at),
            "created_at": _iso(self.created_at),
        }


@dataclass
class OrderDetail:
    """An order together with its line items."""

    order: Order
    items: list[OrderItem]

    def to_dict(self) -> dict[str, Any]:
        result = self.order.to_dict()
        result["items"] = [item.to_dict() for item in self.items]
        return result
