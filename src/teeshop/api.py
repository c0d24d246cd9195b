"""FastAPI REST API for the teeshop storefront."""

import os
import threading
from decimal import Decimal
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import __version__
from .catalog import ProductFilter
from .errors import (
    AddressNotFoundError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidOrderStatusError,
    NotAuthenticatedError,
    NotFoundError,
    NotOwnerError,
    OrderNotFoundError,
    PaymentMethodNotFoundError,
    ProductNotFoundError,
    TeeshopError,
    UserNotFoundError,
    UsernameTakenError,
)
from .models import Address, CartLine, Order, PaymentMethod, User
from .pricing import compute_totals
from .seed import SESSION_USERNAME, seed_store
from .store import Store

DEMO_USERNAME = SESSION_USERNAME

# Set TEESHOP_SEED=0 to start with an empty store
SEED_ON_STARTUP = os.environ.get("TEESHOP_SEED", "1") != "0"

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "TEESHOP_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]


# --- Pydantic Schemas ---


class RequestModel(BaseModel):
    """Request bodies accept snake_case or the storefront client's camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserSchema(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    created_at: str


class RegisterRequest(RequestModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(RequestModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(RequestModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class AddressSchema(BaseModel):
    id: int
    user_id: int
    address_name: str
    is_default: bool
    first_name: str
    last_name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: str
    created_at: str


class AddressCreateRequest(RequestModel):
    address_name: str = Field(..., min_length=1, description="Label, e.g. 'Home' or 'Work'")
    is_default: bool = False
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)


class AddressUpdateRequest(RequestModel):
    """Partial update; only fields present in the body are applied."""

    address_name: Optional[str] = None
    is_default: Optional[bool] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class PaymentMethodSchema(BaseModel):
    id: int
    user_id: int
    card_name: str
    cardholder_name: str
    card_number: str
    card_type: str
    expiry_month: str
    expiry_year: str
    is_default: bool
    created_at: str


class PaymentMethodCreateRequest(RequestModel):
    card_name: str = Field(..., min_length=1, description="Label, e.g. 'Personal Card'")
    cardholder_name: str = Field(..., min_length=1)
    card_number: str = Field(..., pattern=r"^\d{4}$", description="Last 4 digits only")
    card_type: str = Field(..., min_length=1)
    expiry_month: str = Field(..., min_length=1)
    expiry_year: str = Field(..., min_length=1)
    is_default: bool = False


class PaymentMethodUpdateRequest(RequestModel):
    card_name: Optional[str] = None
    cardholder_name: Optional[str] = None
    card_number: Optional[str] = Field(None, pattern=r"^\d{4}$")
    card_type: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    is_default: Optional[bool] = None


class ProductSchema(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    category: str
    image_url: str
    images: Optional[list[str]] = None
    materials: Optional[str] = None
    care_instructions: Optional[str] = None
    in_stock: bool
    available_colors: list[str]
    available_sizes: list[str]
    gender: str
    created_at: str


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    total: int


class ProductFacetsResponse(BaseModel):
    categories: list[str]
    colors: list[str]
    sizes: list[str]
    genders: list[str]


class CartItemRequest(RequestModel):
    product_id: int
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0, description="Unit price shown to the shopper")
    quantity: int = Field(..., ge=1)
    size: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)
    image_url: Optional[str] = None


class ShippingInfoRequest(RequestModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None


class PaymentInfoRequest(RequestModel):
    """Only the label is kept; card details in the body are ignored."""

    payment_method: str = Field(..., min_length=1, description="e.g. 'Credit Card', 'PayPal'")


class OrderCreateRequest(RequestModel):
    shipping_info: ShippingInfoRequest
    payment_info: PaymentInfoRequest
    cart_items: list[CartItemRequest] = Field(..., min_length=1)
    billing_address: Optional[ShippingInfoRequest] = None


class CartSummaryRequest(RequestModel):
    items: list[CartItemRequest] = Field(default_factory=list)


class TotalsSchema(BaseModel):
    subtotal: float
    shipping: float
    tax: float
    total: float
    item_count: int


class ShippingAddressSchema(BaseModel):
    first_name: str
    last_name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: Optional[str] = None
    email: Optional[str] = None


class OrderItemSchema(BaseModel):
    id: int
    order_id: int
    product_id: int
    name: str
    price: float
    quantity: int
    size: str
    color: str
    image_url: Optional[str] = None


class OrderSchema(BaseModel):
    id: int
    user_id: Optional[int] = None
    order_number: str
    status: str
    subtotal: float
    shipping: float
    tax: float
    total: float
    shipping_address: ShippingAddressSchema
    billing_address: Optional[ShippingAddressSchema] = None
    payment_method: str
    estimated_delivery_date: str
    delivered_at: Optional[str] = None
    created_at: str
    items: list[OrderItemSchema] = Field(default_factory=list)


class OrderStatusUpdateRequest(RequestModel):
    status: str = Field(..., description="processing | shipped | delivered | cancelled")


class HealthResponse(BaseModel):
    status: str
    version: str
    product_count: int
    order_count: int


# --- Helper Functions ---


_store: Store | None = None
_store_lock = threading.Lock()


def get_store() -> Store:
    """Get the process-wide Store, seeding it on first use unless TEESHOP_SEED=0."""
    global _store
    with _store_lock:
        if _store is None:
            store = Store()
            if SEED_ON_STARTUP:
                seed_store(store)
            _store = store
        return _store


def get_optional_user(store: Store = Depends(get_store)) -> Optional[User]:
    """The stand-in session user, or None when it doesn't exist (guest)."""
    return store.get_user_by_username(DEMO_USERNAME)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """The stand-in session user; 401 when it doesn't exist."""
    if user is None:
        raise NotAuthenticatedError(DEMO_USERNAME)
    return user


def _owned_address(store: Store, user: User, address_id: int, action: str = "access") -> Address:
    address = store.get_address(address_id)
    if address is None:
        raise AddressNotFoundError(address_id)
    if address.user_id != user.id:
        raise NotOwnerError("address", address_id, action)
    return address


def _owned_payment_method(
    store: Store, user: User, payment_method_id: int, action: str = "access"
) -> PaymentMethod:
    payment_method = store.get_payment_method(payment_method_id)
    if payment_method is None:
        raise PaymentMethodNotFoundError(payment_method_id)
    if payment_method.user_id != user.id:
        raise NotOwnerError("payment method", payment_method_id, action)
    return payment_method


def _visible_order(store: Store, user: Optional[User], order_id: int, action: str = "access") -> Order:
    """Guest orders are visible to anyone; user orders only to their owner."""
    order = store.get_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    if order.user_id is not None and (user is None or order.user_id != user.id):
        raise NotOwnerError("order", order_id, action)
    return order


def _cart_lines(items: list[CartItemRequest]) -> list[CartLine]:
    return [CartLine(**item.model_dump()) for item in items]


def order_to_schema(store: Store, order_id: int) -> OrderSchema:
    detail = store.get_order_with_items(order_id)
    if detail is None:
        raise OrderNotFoundError(order_id)
    return OrderSchema(**detail.to_dict())


# --- FastAPI App ---


app = FastAPI(
    title="teeshop API",
    description="T-shirt storefront: catalog, saved addresses and cards, checkout and orders.",
    version=__version__,
)

# CORS for the storefront dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes; subclasses inherit their base's code
ERROR_STATUS_CODES: dict[type, int] = {
    NotFoundError: 404,
    ProductNotFoundError: 404,
    AddressNotFoundError: 404,
    PaymentMethodNotFoundError: 404,
    OrderNotFoundError: 404,
    UserNotFoundError: 404,
    InvalidInputError: 400,
    InvalidOrderStatusError: 400,
    UsernameTakenError: 400,
    NotOwnerError: 403,
    NotAuthenticatedError: 401,
    InvalidCredentialsError: 401,
}


def status_code_for(exc: TeeshopError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


@app.exception_handler(TeeshopError)
async def teeshop_error_handler(request: Request, exc: TeeshopError) -> JSONResponse:
    """Map TeeshopError subclasses to appropriate HTTP responses."""
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health", response_model=HealthResponse)
def health_check(store: Store = Depends(get_store)):
    """Basic service status."""
    return HealthResponse(
        status="ok",
        version=__version__,
        product_count=store.list_products().total,
        order_count=len(store.list_orders()),
    )


# --- Auth Endpoints ---


@app.post("/api/auth/register", response_model=UserSchema, status_code=201)
def register(request: RegisterRequest, store: Store = Depends(get_store)):
    """Register a new account. Passwords are never returned."""
    user = store.create_user(**request.model_dump())
    return UserSchema(**user.to_dict())


@app.post("/api/auth/login", response_model=UserSchema)
def login(request: LoginRequest, store: Store = Depends(get_store)):
    user = store.authenticate(request.username, request.password)
    if user is None:
        raise InvalidCredentialsError()
    return UserSchema(**user.to_dict())


@app.post("/api/auth/logout")
def logout():
    return {"message": "Logged out successfully"}


@app.get("/api/auth/me", response_model=UserSchema)
def me(user: User = Depends(get_current_user)):
    return UserSchema(**user.to_dict())


# --- Product Endpoints ---


@app.get("/api/products", response_model=ProductListResponse)
def list_products(
    category: Optional[str] = None,
    color: Optional[str] = None,
    size: Optional[str] = None,
    gender: Optional[str] = None,
    sort: Optional[str] = Query(default=None, description="price_asc | price_desc | newest"),
    page: Optional[int] = Query(default=None, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, alias="pageSize"),
    in_stock: Optional[bool] = Query(default=True, alias="inStock"),
    store: Store = Depends(get_store),
):
    """
    Browse the catalog.

    All filters are combined. Pagination applies only when both page and
    pageSize are given; `total` is always the unpaginated match count.
    """
    result = store.list_products(
        ProductFilter(
            category=category,
            in_stock=in_stock,
            color=color,
            size=size,
            gender=gender,
            sort=sort,
            page=page,
            page_size=page_size,
        )
    )
    return ProductListResponse(**result.to_dict())


@app.get("/api/products/facets", response_model=ProductFacetsResponse)
def product_facets(store: Store = Depends(get_store)):
    """Distinct categories, colors, sizes and genders for the filter sidebar."""
    return ProductFacetsResponse(**store.product_facets())


@app.get("/api/products/{product_id}", response_model=ProductSchema)
def get_product(product_id: int, store: Store = Depends(get_store)):
    product = store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return ProductSchema(**product.to_dict())


# --- Cart / Checkout Endpoints ---


@app.post("/api/cart/summary", response_model=TotalsSchema)
@app.post("/api/checkout/summary", response_model=TotalsSchema)
def cart_summary(request: CartSummaryRequest):
    """Totals for a cart, computed exactly as order creation computes them."""
    totals = compute_totals(_cart_lines(request.items))
    return TotalsSchema(**totals.to_dict())


# --- Order Endpoints ---


@app.post("/api/orders", response_model=OrderSchema, status_code=201)
def create_order(
    request: OrderCreateRequest,
    store: Store = Depends(get_store),
    user: Optional[User] = Depends(get_optional_user),
):
    """
    Place an order from a checkout snapshot.

    Prices are taken from the submitted cart as-is.
    """
    billing = request.billing_address.model_dump() if request.billing_address else None
    order = store.create_order(
        shipping_info=request.shipping_info.model_dump(),
        payment_info=request.payment_info.model_dump(),
        cart_items=_cart_lines(request.cart_items),
        user_id=user.id if user else None,
        billing_address=billing,
    )
    return order_to_schema(store, order.id)


@app.get("/api/orders", response_model=list[OrderSchema])
def list_orders(store: Store = Depends(get_store), user: User = Depends(get_current_user)):
    """Order history of the current user, newest first."""
    orders = sorted(
        store.list_orders(user.id), key=lambda o: (o.created_at, o.id), reverse=True
    )
    return [order_to_schema(store, o.id) for o in orders]


@app.get("/api/orders/recent", response_model=OrderSchema)
def most_recent_order(store: Store = Depends(get_store), user: User = Depends(get_current_user)):
    """The current user's newest order (order confirmation page)."""
    detail = store.get_most_recent_order(user.id)
    if detail is None:
        raise OrderNotFoundError("most recent")
    return OrderSchema(**detail.to_dict())


@app.get("/api/orders/{order_id}", response_model=OrderSchema)
def get_order(
    order_id: int,
    store: Store = Depends(get_store),
    user: Optional[User] = Depends(get_optional_user),
):
    _visible_order(store, user, order_id)
    return order_to_schema(store, order_id)


@app.patch("/api/orders/{order_id}/status", response_model=OrderSchema)
def update_order_status(
    order_id: int,
    request: OrderStatusUpdateRequest,
    store: Store = Depends(get_store),
    user: Optional[User] = Depends(get_optional_user),
):
    """Set an order's status. Moving to "delivered" stamps delivered_at; leaving it clears the stamp."""
    _visible_order(store, user, order_id, action="update")
    if store.update_order_status(order_id, request.status) is None:
        raise OrderNotFoundError(order_id)
    return order_to_schema(store, order_id)


# --- Profile Endpoints ---


@app.get("/api/users/profile", response_model=UserSchema)
def get_profile(user: User = Depends(get_current_user)):
    return UserSchema(**user.to_dict())


@app.patch("/api/users/profile", response_model=UserSchema)
def update_profile(
    request: ProfileUpdateRequest,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    updated = store.update_user(user.id, **request.model_dump(exclude_unset=True))
    if updated is None:
        raise UserNotFoundError(user.id)
    return UserSchema(**updated.to_dict())


# --- Address Endpoints ---


@app.get("/api/users/addresses", response_model=list[AddressSchema])
def list_addresses(store: Store = Depends(get_store), user: User = Depends(get_current_user)):
    return [AddressSchema(**a.to_dict()) for a in store.list_addresses(user.id)]


@app.post("/api/users/addresses", response_model=AddressSchema, status_code=201)
def create_address(
    request: AddressCreateRequest,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Save an address. Creating it as default demotes the previous default."""
    address = store.create_address(user.id, **request.model_dump())
    return AddressSchema(**address.to_dict())


@app.get("/api/users/addresses/default", response_model=AddressSchema)
def get_default_address(store: Store = Depends(get_store), user: User = Depends(get_current_user)):
    address = store.get_default_address(user.id)
    if address is None:
        raise AddressNotFoundError("default")
    return AddressSchema(**address.to_dict())


@app.get("/api/users/addresses/{address_id}", response_model=AddressSchema)
def get_address(
    address_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    return AddressSchema(**_owned_address(store, user, address_id).to_dict())


@app.put("/api/users/addresses/{address_id}", response_model=AddressSchema)
@app.patch("/api/users/addresses/{address_id}", response_model=AddressSchema)
def update_address(
    address_id: int,
    request: AddressUpdateRequest,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Partially update an address; is_default=true demotes the user's other addresses."""
    _owned_address(store, user, address_id, action="update")
    updated = store.update_address(address_id, **request.model_dump(exclude_unset=True))
    if updated is None:
        raise AddressNotFoundError(address_id)
    return AddressSchema(**updated.to_dict())


@app.delete("/api/users/addresses/{address_id}", status_code=204)
def delete_address(
    address_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Delete an address. If it was the default, the user is left without one."""
    _owned_address(store, user, address_id, action="delete")
    if not store.delete_address(address_id):
        raise AddressNotFoundError(address_id)
    return Response(status_code=204)


# --- Payment Method Endpoints ---


@app.get("/api/users/payment-methods", response_model=list[PaymentMethodSchema])
def list_payment_methods(store: Store = Depends(get_store), user: User = Depends(get_current_user)):
    return [PaymentMethodSchema(**pm.to_dict()) for pm in store.list_payment_methods(user.id)]


@app.post("/api/users/payment-methods", response_model=PaymentMethodSchema, status_code=201)
def create_payment_method(
    request: PaymentMethodCreateRequest,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    payment_method = store.create_payment_method(user.id, **request.model_dump())
    return PaymentMethodSchema(**payment_method.to_dict())


@app.get("/api/users/payment-methods/default", response_model=PaymentMethodSchema)
def get_default_payment_method(
    store: Store = Depends(get_store), user: User = Depends(get_current_user)
):
    payment_method = store.get_default_payment_method(user.id)
    if payment_method is None:
        raise PaymentMethodNotFoundError("default")
    return PaymentMethodSchema(**payment_method.to_dict())


@app.get("/api/users/payment-methods/{payment_method_id}", response_model=PaymentMethodSchema)
def get_payment_method(
    payment_method_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    return PaymentMethodSchema(**_owned_payment_method(store, user, payment_method_id).to_dict())


@app.put("/api/users/payment-methods/{payment_method_id}", response_model=PaymentMethodSchema)
@app.patch("/api/users/payment-methods/{payment_method_id}", response_model=PaymentMethodSchema)
def update_payment_method(
    payment_method_id: int,
    request: PaymentMethodUpdateRequest,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    _owned_payment_method(store, user, payment_method_id, action="update")
    updated = store.update_payment_method(
        payment_method_id, **request.model_dump(exclude_unset=True)
    )
    if updated is None:
        raise PaymentMethodNotFoundError(payment_method_id)
    return PaymentMethodSchema(**updated.to_dict())


@app.delete("/api/users/payment-methods/{payment_method_id}", status_code=204)
def delete_payment_method(
    payment_method_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(get_current_user),
):
    _owned_payment_method(store, user, payment_method_id, action="delete")
    if not store.delete_payment_method(payment_method_id):
        raise PaymentMethodNotFoundError(payment_method_id)
    return Response(status_code=204)
