"""Error taxonomy for the order ledger.

Every error carries a stable ``kind`` and the HTTP status the API maps it to,
so clients can branch on re-authenticate vs fix input vs retry.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(StorefrontError):
    """Raised for malformed, missing or out-of-range input."""

    kind = "validation"
    status_code = 400


class AuthenticationError(StorefrontError):
    """Raised when the bearer credential is missing or cannot be verified."""

    kind = "authentication"
    status_code = 401


class AuthorizationError(StorefrontError):
    """Raised when a principal lacks the role an operation requires."""

    kind = "authorization"
    status_code = 403

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class NotFoundError(StorefrontError):
    """Raised when an order or notification id doesn't exist."""

    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: int):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class PersistenceError(StorefrontError):
    """Raised when a database write fails and has been rolled back."""

    kind = "persistence"
    status_code = 500


class OrderCreationError(PersistenceError):
    """Raised when the order transaction fails and has been rolled back."""

    def __init__(self, details: str | None = None):
        super().__init__("Failed to create order", details)


class PaymentGatewayError(StorefrontError):
    """Raised when the payment provider is unreachable or not configured."""

    kind = "payment_gateway"
    status_code = 502
