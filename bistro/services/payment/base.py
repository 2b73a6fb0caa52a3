"""
Payment Service Abstract Base Class

Defines the interface contract for all payment service implementations.
Both MockPaymentService and StripePaymentService implement these methods,
so the checkout routes behave identically whichever one is active.

Design Pattern: Strategy Pattern
    - Allows runtime switching between payment providers
    - Facilitates testing with the mock implementation
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


def to_minor_units(amount: float) -> int:
    """
    Convert a dollar amount to cents.

    Stripe expects amounts in the smallest currency unit (cents for USD).

    Args:
        amount: Amount in dollars (e.g., 29.99)

    Returns:
        int: Amount in cents (e.g., 2999)
    """
    return int(round(amount * 100))


@dataclass
class PaymentIntentResult:
    """
    Standardized result from payment intent creation.

    Attributes:
        success: Whether the intent was created
        payment_intent_id: Identifier of the intent (Stripe format: pi_xxx)
        client_secret: Secret the browser uses to confirm the card payment
        amount: Amount in minor units (cents)
        currency: Currency code (e.g., "usd")
        status: Intent status reported by the provider
        error_message: Error description if creation failed
        error_code: Machine-readable error code
        response_time_ms: Time taken by the provider
    """
    success: bool
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    amount: Optional[int] = None
    currency: str = "usd"
    status: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0


class BasePaymentService(ABC):
    """
    Abstract base class for payment services.

    Example:
        >>> service = get_payment_service()  # Returns Mock or Stripe
        >>> result = await service.create_payment_intent(amount=42.50)
        >>> if result.success:
        ...     print(result.client_secret)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the payment provider.

        Returns:
            str: Provider name (e.g., "mock", "stripe")
        """
        pass

    @abstractmethod
    async def create_payment_intent(
        self,
        amount: float,
        currency: Optional[str] = None,
        payment_method_types: Optional[list[str]] = None,
    ) -> PaymentIntentResult:
        """
        Create a payment intent for client-side confirmation.

        Args:
            amount: Amount in dollars
            currency: Currency code, provider default when None
            payment_method_types: Allowed methods, ["card"] when None

        Returns:
            PaymentIntentResult: Contains the client_secret for the frontend
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the payment service.

        Returns:
            bool: True if service is reachable and operational
        """
        pass
