"""
Stripe Payment Service Implementation

Production implementation using the official Stripe Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - STRIPE_SECRET_KEY must be set in environment

Security Notes:
    - Card details never touch this server; the browser confirms the
      intent with the client secret returned here
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import stripe

from bistro.core.config import Settings, get_settings
from bistro.services.payment.base import (
    BasePaymentService,
    PaymentIntentResult,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class StripePaymentService(BasePaymentService):
    """
    Production Stripe payment service implementation.

    The SDK is synchronous, so calls are run in a worker thread to keep
    the event loop serving other requests.

    Example:
        >>> service = StripePaymentService()
        >>> result = await service.create_payment_intent(amount=29.99)
        >>> result.client_secret
        'pi_..._secret_...'
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize Stripe with API key from settings.

        Raises:
            ValueError: If STRIPE_SECRET_KEY is not configured
        """
        settings = settings or get_settings()

        if not settings.stripe_secret_key:
            raise ValueError(
                "STRIPE_SECRET_KEY is required for production mode. "
                "Set it in your .env file or environment variables."
            )

        # Configure Stripe SDK
        stripe.api_key = settings.stripe_secret_key
        stripe.api_version = "2023-10-16"  # Pin API version for stability

        self._currency = settings.stripe_currency

        logger.info(
            f"StripePaymentService initialized "
            f"(api_version={stripe.api_version})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "stripe"

    async def create_payment_intent(
        self,
        amount: float,
        currency: Optional[str] = None,
        payment_method_types: Optional[list[str]] = None,
    ) -> PaymentIntentResult:
        """
        Create a PaymentIntent for client-side confirmation.

        Returns a client_secret that the frontend uses with Stripe.js
        to complete the card payment.
        """
        start_time = datetime.now()

        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=to_minor_units(amount),
                currency=currency or self._currency,
                payment_method_types=payment_method_types or ["card"],
            )

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

            logger.info(
                f"Stripe: PaymentIntent created - {intent.id} - "
                f"status={intent.status}"
            )

            return PaymentIntentResult(
                success=True,
                payment_intent_id=intent.id,
                client_secret=intent.client_secret,
                amount=intent.amount,
                currency=intent.currency,
                status=intent.status,
                response_time_ms=elapsed_ms,
            )

        except stripe.AuthenticationError as e:
            # API key issues
            logger.critical(f"Stripe: Authentication failed - {e}")

            return PaymentIntentResult(
                success=False,
                error_message="Payment service configuration error",
                error_code="authentication_error",
            )

        except stripe.APIConnectionError as e:
            # Network issues
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Connection error - {e}")

            return PaymentIntentResult(
                success=False,
                error_message="Payment service temporarily unavailable",
                error_code="connection_error",
                response_time_ms=elapsed_ms,
            )

        except stripe.StripeError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Failed to create PaymentIntent - {e}")

            return PaymentIntentResult(
                success=False,
                error_message=e.user_message or str(e),
                error_code=e.code or "stripe_error",
                response_time_ms=elapsed_ms,
            )

    async def health_check(self) -> bool:
        """
        Verify Stripe API connectivity.

        Makes a lightweight API call to verify credentials and connectivity.
        """
        try:
            await asyncio.to_thread(stripe.Account.retrieve)
            logger.debug("Stripe: Health check passed")
            return True

        except stripe.StripeError as e:
            logger.error(f"Stripe: Health check failed - {e}")
            return False
