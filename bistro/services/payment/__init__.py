"""
Payment Service Factory

Provides a single entry point for obtaining a payment service instance.
The factory pattern allows the routes to remain agnostic about which
implementation is being used.

Usage:
    from bistro.services.payment import get_payment_service

    # Returns MockPaymentService or StripePaymentService based on ENV_MODE
    payment_service = get_payment_service()

    result = await payment_service.create_payment_intent(29.99)

Environment Switching:
    - ENV_MODE=development → MockPaymentService (no API calls)
    - ENV_MODE=staging → StripePaymentService (test keys)
    - ENV_MODE=production → StripePaymentService (live keys)
"""

import logging
from functools import lru_cache

from bistro.core.config import get_settings
from bistro.services.payment.base import (
    BasePaymentService,
    PaymentIntentResult,
    to_minor_units,
)
from bistro.services.payment.mock import MockPaymentService
from bistro.services.payment.stripe import StripePaymentService

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_service() -> BasePaymentService:
    """
    Get the configured payment service instance.

    The instance is cached (singleton pattern) so the Stripe SDK is
    configured once per process. Routes receive it through Depends, which
    lets tests substitute their own instance.

    Returns:
        BasePaymentService: Configured payment service instance

    Raises:
        ValueError: If production mode but Stripe key not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Payment Service: Using MockPaymentService (development mode)")
        return MockPaymentService(
            failure_rate=settings.mock_payment_failure_rate,
            max_latency=settings.mock_payment_max_latency,
            currency=settings.stripe_currency,
        )

    logger.info(
        f"Payment Service: Using StripePaymentService "
        f"({settings.env_mode.value} mode)"
    )
    return StripePaymentService(settings)


def reset_payment_service() -> None:
    """
    Clear the cached payment service instance.

    The next call to get_payment_service() will create a new instance.
    """
    get_payment_service.cache_clear()
    logger.debug("Payment service cache cleared")


__all__ = [
    "get_payment_service",
    "reset_payment_service",
    "to_minor_units",
    "BasePaymentService",
    "PaymentIntentResult",
    "MockPaymentService",
    "StripePaymentService",
]
