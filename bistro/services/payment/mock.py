"""
Mock Payment Service Implementation

Simulates Stripe-like payment intent creation without making real API calls.
Used in development mode (ENV_MODE=development) to:
    - Run the checkout flow locally without a Stripe account
    - Exercise gateway failures on demand
    - Keep the test suite offline

Behavior:
    - Simulates response times up to max_latency
    - Fails a configurable share of requests with real Stripe decline codes
    - Generates Stripe-like IDs and client secrets (pi_xxx_secret_xxx)
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from bistro.services.payment.base import (
    BasePaymentService,
    PaymentIntentResult,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class MockPaymentService(BasePaymentService):
    """
    Mock implementation of the payment service.

    Attributes:
        failure_rate: Probability of simulated failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        currency: Default currency of created intents

    Example:
        >>> service = MockPaymentService(failure_rate=0.0)
        >>> result = await service.create_payment_intent(29.99)
        >>> result.amount
        2999
    """

    # Simulated failure reasons (mimics real Stripe error codes)
    DECLINE_REASONS = [
        ("card_declined", "Your card was declined."),
        ("processing_error", "An error occurred while processing your card."),
        ("rate_limit", "Too many requests hit the API too quickly."),
    ]

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.3,
        currency: str = "usd",
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(min_latency, max_latency)
        self.currency = currency
        self.created_intents: list[PaymentIntentResult] = []

        logger.info(
            f"MockPaymentService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{self.max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    def _generate_payment_intent_id(self) -> str:
        """Generate a Stripe-like payment intent ID."""
        return f"pi_mock_{uuid.uuid4().hex[:24]}"

    async def _simulate_latency(self) -> float:
        """
        Simulate network latency.

        Returns:
            float: Actual latency in milliseconds
        """
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        """Determine if this request should simulate a failure."""
        return random.random() < self.failure_rate

    async def create_payment_intent(
        self,
        amount: float,
        currency: Optional[str] = None,
        payment_method_types: Optional[list[str]] = None,
    ) -> PaymentIntentResult:
        """
        Simulate creating a payment intent.

        The client secret has Stripe's shape but will not work with Stripe.js.
        """
        latency_ms = await self._simulate_latency()
        currency = currency or self.currency

        if amount <= 0:
            return PaymentIntentResult(
                success=False,
                currency=currency,
                error_message="Amount must be greater than 0",
                error_code="invalid_amount",
                response_time_ms=latency_ms,
            )

        if self._should_fail():
            error_code, error_message = random.choice(self.DECLINE_REASONS)
            logger.debug(f"Mock: Payment intent failed - {error_code}")

            return PaymentIntentResult(
                success=False,
                amount=to_minor_units(amount),
                currency=currency,
                error_message=error_message,
                error_code=error_code,
                response_time_ms=latency_ms,
            )

        payment_intent_id = self._generate_payment_intent_id()
        result = PaymentIntentResult(
            success=True,
            payment_intent_id=payment_intent_id,
            client_secret=f"{payment_intent_id}_secret_{uuid.uuid4().hex[:16]}",
            amount=to_minor_units(amount),
            currency=currency,
            status="requires_payment_method",
            response_time_ms=latency_ms,
        )
        self.created_intents.append(result)

        logger.debug(f"Mock: Created payment intent {payment_intent_id} for {result.amount} {currency}")

        return result

    async def health_check(self) -> bool:
        """
        Mock health check always returns True.

        In development, we assume the mock service is always available.
        """
        logger.debug("Mock: Health check passed")
        return True
