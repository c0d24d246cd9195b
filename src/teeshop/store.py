"""In-memory storage for teeshop."""

import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Iterator, Mapping, Sequence, TypeVar

from .catalog import ProductFilter, ProductPage, catalog_facets, query_products
from .errors import InvalidInputError, InvalidOrderStatusError, UsernameTakenError
from .models import (
    ORDER_STATUSES,
    Address,
    CartLine,
    Order,
    OrderDetail,
    OrderItem,
    PaymentMethod,
    Product,
    ShippingAddress,
    User,
    _utc_now,
)
from .pricing import compute_totals

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "T"
ORDER_NUMBER_HEX_CHARS = 5
ESTIMATED_DELIVERY_DAYS = 5

R = TypeVar("R", Address, PaymentMethod)


def _check_changes(
    changes: Mapping[str, Any],
    editable: Sequence[str],
    required: Sequence[str],
    kind: str,
) -> dict[str, Any]:
    """
    Validate a partial update against a record type's editable fields.

    Raises:
        InvalidInputError: On unknown/immutable fields or blanked required fields.
    """
    for name, value in changes.items():
        if name not in editable:
            raise InvalidInputError(name, f"cannot be changed on {kind}")
        if name in required and (not isinstance(value, str) or not value.strip()):
            raise InvalidInputError(name, "is required")
        if name == "is_default" and not isinstance(value, bool):
            raise InvalidInputError(name, "must be true or false")
    return dict(changes)


def _check_required(data: Mapping[str, Any], required: Sequence[str]) -> None:
    for name in required:
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(name, "is required")


def _check_card_number(card_number: str) -> None:
    if len(card_number) != 4 or not card_number.isdigit():
        raise InvalidInputError("card_number", "must be the last 4 digits only")


class Store:
    """
    Catalog, identity and order storage held in process memory.

    Records live in per-type dicts keyed by auto-incrementing integer ids.
    Mutations replace records rather than editing them in place, so objects
    handed to callers are stable snapshots.

    Address and payment-method writes for a user run under that user's lock,
    which keeps the "at most one default" scan-and-write atomic. Every write
    to a record table also holds the store lock, and readers copy a table
    under that lock before scanning it.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        """
        Initialize an empty Store.

        Args:
            clock: Returns the current time (override for testing).
        """
        self._clock = clock or _utc_now
        self._users: dict[int, User] = {}
        self._addresses: dict[int, Address] = {}
        self._payment_methods: dict[int, PaymentMethod] = {}
        self._products: dict[int, Product] = {}
        self._orders: dict[int, Order] = {}
        self._order_items: dict[int, OrderItem] = {}
        self._counters: dict[str, int] = {}
        self._lock = threading.RLock()
        self._user_locks: dict[int, threading.Lock] = {}

    def now(self) -> datetime:
        return self._clock()

    def _next_id(self, kind: str) -> int:
        with self._lock:
            self._counters[kind] = self._counters.get(kind, 0) + 1
            return self._counters[kind]

    def _snapshot(self, records: dict[int, Any]) -> list[Any]:
        """Copy a record table's values under the store lock."""
        with self._lock:
            return list(records.values())

    @contextmanager
    def _user_lock(self, user_id: int) -> Iterator[None]:
        """Hold the per-user lock for a scan-then-write sequence."""
        with self._lock:
            lock = self._user_locks.setdefault(user_id, threading.Lock())
        with lock:
            yield

    # --- Users ---

    def create_user(
        self,
        username: str,
        password: str,
        email: str | None = None,
        name: str | None = None,
        phone: str | None = None,
    ) -> User:
        """
        Register a user.

        Raises:
            InvalidInputError: If username or password is blank.
            UsernameTakenError: If the username is already registered.
        """
        _check_required({"username": username, "password": password}, ("username", "password"))
        with self._lock:
            if self.get_user_by_username(username) is not None:
                raise UsernameTakenError(username)
            user = User(
                id=self._next_id("user"),
                username=username,
                password=password,
                email=email,
                name=name,
                phone=phone,
                created_at=self.now(),
            )
            self._users[user.id] = user
        logger.info("Created user %s (%d)", username, user.id)
        return user

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        for user in self._snapshot(self._users):
            if user.username == username:
                return user
        return None

    def update_user(self, user_id: int, **changes: Any) -> User | None:
        """Apply a partial profile update. Returns None if the user doesn't exist."""
        changes = _check_changes(changes, User.EDITABLE_FIELDS, ("password",), "user")
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = replace(user, **changes)
            self._users[user_id] = updated
        return updated

    def authenticate(self, username: str, password: str) -> User | None:
        """Plain comparison against the stored password (demo only)."""
        user = self.get_user_by_username(username)
        if user is None or user.password != password:
            return None
        return user

    # --- Default-flag helpers shared by addresses and payment methods ---

    def _demote_defaults(
        self, records: dict[int, R], user_id: int, exclude_id: int | None = None
    ) -> list[int]:
        """Unset is_default on every record of user_id except exclude_id."""
        demoted = []
        for record_id, record in list(records.items()):
            if record.user_id != user_id or record_id == exclude_id:
                continue
            if record.is_default:
                records[record_id] = replace(record, is_default=False)
                demoted.append(record_id)
        if demoted:
            logger.debug("Demoted default records %s for user %d", demoted, user_id)
        return demoted

    def _insert_owned(self, records: dict[int, R], record: R) -> R:
        with self._user_lock(record.user_id), self._lock:
            if record.is_default:
                self._demote_defaults(records, record.user_id)
            records[record.id] = record
        return record

    def _update_owned(
        self, records: dict[int, R], record_id: int, changes: dict[str, Any]
    ) -> R | None:
        current = records.get(record_id)
        if current is None:
            return None
        with self._user_lock(current.user_id), self._lock:
            # Re-read under the lock; a concurrent delete may have won.
            current = records.get(record_id)
            if current is None:
                return None
            if changes.get("is_default") is True:
                self._demote_defaults(records, current.user_id, exclude_id=record_id)
            updated = replace(current, **changes)
            records[record_id] = updated
        return updated

    def _delete_owned(self, records: dict[int, R], record_id: int) -> bool:
        current = records.get(record_id)
        if current is None:
            return False
        with self._user_lock(current.user_id), self._lock:
            return records.pop(record_id, None) is not None

    # --- Addresses ---

    def list_addresses(self, user_id: int) -> list[Address]:
        return [a for a in self._snapshot(self._addresses) if a.user_id == user_id]

    def get_address(self, address_id: int) -> Address | None:
        return self._addresses.get(address_id)

    def get_default_address(self, user_id: int) -> Address | None:
        for address in self.list_addresses(user_id):
            if address.is_default:
                return address
        return None

    def create_address(self, user_id: int, **data: Any) -> Address:
        """
        Save a new address for a user.

        If it is flagged default, every other address of the user is demoted
        first.

        Raises:
            InvalidInputError: If a required field is missing or unknown fields are given.
        """
        data = _check_changes(data, Address.EDITABLE_FIELDS, Address.REQUIRED_FIELDS, "address")
        _check_required(data, Address.REQUIRED_FIELDS)
        address = Address(
            id=self._next_id("address"),
            user_id=user_id,
            created_at=self.now(),
            **data,
        )
        return self._insert_owned(self._addresses, address)

    def update_address(self, address_id: int, **changes: Any) -> Address | None:
        """
        Apply a partial update. Returns None if the address doesn't exist.

        Setting is_default=True demotes the user's other addresses; setting it
        False never touches siblings.
        """
        changes = _check_changes(
            changes, Address.EDITABLE_FIELDS, Address.REQUIRED_FIELDS, "address"
        )
        return self._update_owned(self._addresses, address_id, changes)

    def delete_address(self, address_id: int) -> bool:
        """Delete an address. No other address is promoted to default."""
        return self._delete_owned(self._addresses, address_id)

    # --- Payment methods ---

    def list_payment_methods(self, user_id: int) -> list[PaymentMethod]:
        return [pm for pm in self._snapshot(self._payment_methods) if pm.user_id == user_id]

    def get_payment_method(self, payment_method_id: int) -> PaymentMethod | None:
        return self._payment_methods.get(payment_method_id)

    def get_default_payment_method(self, user_id: int) -> PaymentMethod | None:
        for payment_method in self.list_payment_methods(user_id):
            if payment_method.is_default:
                return payment_method
        return None

    def create_payment_method(self, user_id: int, **data: Any) -> PaymentMethod:
        """
        Save a new card for a user, demoting other defaults when flagged default.

        Raises:
            InvalidInputError: On missing fields or a card number that isn't 4 digits.
        """
        data = _check_changes(
            data, PaymentMethod.EDITABLE_FIELDS, PaymentMethod.REQUIRED_FIELDS, "payment method"
        )
        _check_required(data, PaymentMethod.REQUIRED_FIELDS)
        _check_card_number(data["card_number"])
        payment_method = PaymentMethod(
            id=self._next_id("payment_method"),
            user_id=user_id,
            created_at=self.now(),
            **data,
        )
        return self._insert_owned(self._payment_methods, payment_method)

    def update_payment_method(self, payment_method_id: int, **changes: Any) -> PaymentMethod | None:
        """Apply a partial update. Returns None if the payment method doesn't exist."""
        changes = _check_changes(
            changes, PaymentMethod.EDITABLE_FIELDS, PaymentMethod.REQUIRED_FIELDS, "payment method"
        )
        if "card_number" in changes:
            _check_card_number(changes["card_number"])
        return self._update_owned(self._payment_methods, payment_method_id, changes)

    def delete_payment_method(self, payment_method_id: int) -> bool:
        return self._delete_owned(self._payment_methods, payment_method_id)

    # --- Products ---

    def create_product(self, created_at: datetime | None = None, **data: Any) -> Product:
        """
        Add a product to the catalog.

        Raises:
            InvalidInputError: On a bad price or gender, or missing name/category/image_url.
        """
        _check_required(data, ("name", "category", "image_url"))
        for name in data:
            if name not in Product.EDITABLE_FIELDS:
                raise InvalidInputError(name, "cannot be set on product")
        if "price" not in data:
            raise InvalidInputError("price", "is required")
        product = Product(
            id=self._next_id("product"),
            created_at=created_at or self.now(),
            **data,
        )
        with self._lock:
            self._products[product.id] = product
        return product

    def update_product(self, product_id: int, **changes: Any) -> Product | None:
        changes = _check_changes(
            changes, Product.EDITABLE_FIELDS, ("name", "category", "image_url"), "product"
        )
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                return None
            updated = replace(product, **changes)
            self._products[product_id] = updated
        return updated

    def get_product(self, product_id: int) -> Product | None:
        return self._products.get(product_id)

    def list_products(self, product_filter: ProductFilter | None = None) -> ProductPage:
        """Run a catalog query. Products come out in insertion order unless sorted."""
        return query_products(self._snapshot(self._products), product_filter)

    def product_facets(self) -> dict[str, list[str]]:
        return catalog_facets(self._snapshot(self._products))

    # --- Orders ---

    def _new_order_number(self) -> str:
        """Generate T + 5 hex chars, retrying until unused. Caller holds self._lock."""
        taken = {o.order_number for o in self._orders.values()}
        while True:
            suffix = secrets.token_hex(3).upper()[:ORDER_NUMBER_HEX_CHARS]
            candidate = f"{ORDER_NUMBER_PREFIX}{suffix}"
            if candidate not in taken:
                return candidate

    def create_order(
        self,
        shipping_info: ShippingAddress | Mapping[str, Any],
        payment_info: Mapping[str, Any] | str,
        cart_items: Sequence[CartLine | Mapping[str, Any]],
        user_id: int | None = None,
        billing_address: ShippingAddress | Mapping[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> Order:
        """
        Derive and persist an order and its items from a checkout snapshot.

        Totals come from the caller-supplied prices and quantities via
        compute_totals(). Shipping address and item fields are copied, never
        referenced, so later catalog or address edits leave the order as-is.

        Raises:
            InvalidInputError: On an empty cart or incomplete shipping/payment info.
        """
        if not cart_items:
            raise InvalidInputError("cart_items", "cart is empty")
        lines = [
            item if isinstance(item, CartLine) else CartLine.from_dict(dict(item))
            for item in cart_items
        ]

        if isinstance(shipping_info, ShippingAddress):
            shipping_address = replace(shipping_info)
        else:
            shipping_address = ShippingAddress.from_dict(dict(shipping_info or {}))

        billing = None
        if isinstance(billing_address, ShippingAddress):
            billing = replace(billing_address)
        elif billing_address:
            billing = ShippingAddress.from_dict(dict(billing_address), "billing_address")

        if isinstance(payment_info, str):
            payment_label = payment_info
        else:
            payment_label = (payment_info or {}).get("payment_method")
        if not isinstance(payment_label, str) or not payment_label.strip():
            raise InvalidInputError("payment_info.payment_method", "is required")

        totals = compute_totals(lines)
        placed_at = created_at or self.now()

        with self._lock:
            order = Order(
                id=self._next_id("order"),
                order_number=self._new_order_number(),
                status="processing",
                subtotal=totals.subtotal,
                shipping=totals.shipping,
                tax=totals.tax,
                total=totals.total,
                shipping_address=shipping_address,
                billing_address=billing,
                payment_method=payment_label,
                estimated_delivery_date=placed_at + timedelta(days=ESTIMATED_DELIVERY_DAYS),
                created_at=placed_at,
                user_id=user_id,
            )
            self._orders[order.id] = order
            for line in lines:
                item = OrderItem(
                    id=self._next_id("order_item"),
                    order_id=order.id,
                    product_id=line.product_id,
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                    size=line.size,
                    color=line.color,
                    image_url=line.image_url,
                )
                self._order_items[item.id] = item

        logger.info(
            "Created order %s (%d items, total %s) for user %s",
            order.order_number,
            len(lines),
            order.total,
            user_id,
        )
        return order

    def list_orders(self, user_id: int | None = None) -> list[Order]:
        """List orders in creation order, optionally only those of one user."""
        orders = self._snapshot(self._orders)
        if user_id is not None:
            orders = [o for o in orders if o.user_id == user_id]
        return orders

    def get_order(self, order_id: int) -> Order | None:
        return self._orders.get(order_id)

    def get_order_items(self, order_id: int) -> list[OrderItem]:
        return [item for item in self._snapshot(self._order_items) if item.order_id == order_id]

    def get_order_with_items(self, order_id: int) -> OrderDetail | None:
        order = self._orders.get(order_id)
        if order is None:
            return None
        return OrderDetail(order=order, items=self.get_order_items(order_id))

    def get_most_recent_order(self, user_id: int | None = None) -> OrderDetail | None:
        """Return the newest order by created_at (ties go to the later id)."""
        orders = self.list_orders(user_id)
        if not orders:
            return None
        newest = max(orders, key=lambda o: (o.created_at, o.id))
        return OrderDetail(order=newest, items=self.get_order_items(newest.id))

    def update_order_status(
        self, order_id: int, status: str, at: datetime | None = None
    ) -> Order | None:
        """
        Set an order's status. Returns None if the order doesn't exist.

        Moving into "delivered" stamps delivered_at (with `at` or now); any other
        status clears it.

        Raises:
            InvalidOrderStatusError: If status is not a known value.
        """
        if status not in ORDER_STATUSES:
            raise InvalidOrderStatusError(status, ORDER_STATUSES)
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            changes: dict[str, Any] = {"status": status}
            if status != "delivered":
                changes["delivered_at"] = None
            elif order.status != "delivered":
                changes["delivered_at"] = at or self.now()
            updated = replace(order, **changes)
            self._orders[order_id] = updated
        logger.info("Order %s: %s -> %s", order.order_number, order.status, status)
        return updated
