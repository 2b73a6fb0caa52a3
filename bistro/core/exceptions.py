"""
API Error Types

Every error the handlers raise on purpose derives from BistroError and
carries its HTTP status. The application renders them as
``{"message": ...}`` bodies, the shape the web client already expects.
"""

from typing import Optional


class BistroError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to the response body."""
        return {"message": self.message}


class UnauthorizedError(BistroError):
    """Missing, malformed or expired bearer token."""
    status_code = 401
    default_message = "Unauthorized access"


class ForbiddenError(BistroError):
    """Valid token but the caller lacks the role or identity."""
    status_code = 403
    default_message = "forbidden access"


class NotFoundError(BistroError):
    status_code = 404
    default_message = "Not found"


class InvalidIdError(BistroError):
    """Path or body identifier is not a valid ObjectId."""
    status_code = 400
    default_message = "Invalid id"


class PaymentGatewayError(BistroError):
    """The payment gateway refused to create a payment intent."""
    status_code = 400
    default_message = "Payment processing error"


class CheckoutConflictError(BistroError):
    """Cart rows referenced by a payment are missing or already purged."""
    status_code = 409
    default_message = "Cart items are no longer available"
