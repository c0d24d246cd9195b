"""Custom exceptions for teeshop."""


class TeeshopError(Exception):
    """Base exception for all teeshop errors."""

    pass


class NotFoundError(TeeshopError):
    """Raised when a referenced record doesn't exist."""

    kind = "Record"

    def __init__(self, record_id: int | str):
        self.record_id = record_id
        super().__init__(f"{self.kind} not found: {record_id}")


class ProductNotFoundError(NotFoundError):
    """Raised when a product ID doesn't exist."""

    kind = "Product"


class AddressNotFoundError(NotFoundError):
    """Raised when an address ID doesn't exist."""

    kind = "Address"


class PaymentMethodNotFoundError(NotFoundError):
    """Raised when a payment method ID doesn't exist."""

    kind = "Payment method"


class OrderNotFoundError(NotFoundError):
    """Raised when an order ID doesn't exist."""

    kind = "Order"


class UserNotFoundError(NotFoundError):
    """Raised when a user ID or username doesn't exist."""

    kind = "User"


class InvalidInputError(TeeshopError):
    """Raised when input to a create/update operation is malformed or incomplete."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidOrderStatusError(TeeshopError):
    """Raised when an order status is not one of the known values."""

    def __init__(self, status: str, allowed: tuple[str, ...]):
        self.status = status
        self.allowed = allowed
        super().__init__(
            f"Invalid order status '{status}'. Expected one of: {', '.join(allowed)}"
        )


class NotOwnerError(TeeshopError):
    """Raised when a record is not owned by the requesting user."""

    def __init__(self, kind: str, record_id: int, action: str = "access"):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"Not authorized to {action} this {kind} ({record_id})")


class NotAuthenticatedError(TeeshopError):
    """Raised when the stand-in session user is not available."""

    def __init__(self, username: str | None = None):
        self.username = username
        msg = "Not authenticated"
        if username:
            msg = f"Not authenticated: user '{username}' does not exist"
        super().__init__(msg)


class InvalidCredentialsError(TeeshopError):
    """Raised when a login attempt fails."""

    def __init__(self):
        super().__init__("Invalid credentials")


class UsernameTakenError(TeeshopError):
    """Raised when registering a username that already exists."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username already exists: {username}")
