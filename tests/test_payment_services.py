from types import SimpleNamespace

import pytest
import stripe

from bistro.core.config import Settings
from bistro.services import payment
from bistro.services.payment import (
    MockPaymentService,
    StripePaymentService,
    get_payment_service,
    reset_payment_service,
    to_minor_units,
)


@pytest.fixture
def stripe_settings() -> Settings:
    return Settings(_env_file=None, env_mode="production", stripe_secret_key="sk_test_bistro", stripe_currency="usd")


@pytest.fixture
def stripe_service(stripe_settings, monkeypatch):
    # The SDK keeps its key in module globals
    monkeypatch.setattr(stripe, "api_key", None)
    monkeypatch.setattr(stripe, "api_version", None)
    return StripePaymentService(stripe_settings)


@pytest.mark.parametrize(
    "amount,expected",
    [(19.99, 1999), (42.5, 4250), (0.1, 10), (1.005, 100), (7, 700)],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


# =============================================================================
# MOCK GATEWAY
# =============================================================================

@pytest.mark.anyio
async def test_mock_creates_intent():
    service = MockPaymentService(max_latency=0.0)

    result = await service.create_payment_intent(29.99)

    assert result.success
    assert result.amount == 2999
    assert result.client_secret.startswith(f"{result.payment_intent_id}_secret_")
    assert service.created_intents == [result]


@pytest.mark.anyio
async def test_mock_rejects_non_positive_amount():
    service = MockPaymentService(max_latency=0.0)

    result = await service.create_payment_intent(0)

    assert not result.success
    assert result.error_code == "invalid_amount"


@pytest.mark.anyio
async def test_mock_declines_at_full_failure_rate():
    service = MockPaymentService(failure_rate=1.0, max_latency=0.0)

    result = await service.create_payment_intent(10.0)

    assert not result.success
    assert result.error_code in {code for code, _ in MockPaymentService.DECLINE_REASONS}


# =============================================================================
# STRIPE GATEWAY
# =============================================================================

def test_stripe_requires_secret_key():
    settings = Settings(_env_file=None, env_mode="production", stripe_secret_key=None)

    with pytest.raises(ValueError):
        StripePaymentService(settings)


def test_stripe_configures_sdk(stripe_service):
    assert stripe.api_key == "sk_test_bistro"
    assert stripe_service.provider_name == "stripe"


@pytest.mark.anyio
async def test_stripe_creates_card_intent(stripe_service, monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(
            id="pi_123",
            client_secret="pi_123_secret_abc",
            amount=kwargs["amount"],
            currency=kwargs["currency"],
            status="requires_payment_method",
        )

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    result = await stripe_service.create_payment_intent(42.5)

    assert result.success
    assert result.client_secret == "pi_123_secret_abc"
    assert calls[0]["amount"] == 4250
    assert calls[0]["currency"] == "usd"
    assert calls[0]["payment_method_types"] == ["card"]
    assert set(calls[0]) == {"amount", "currency", "payment_method_types"}


@pytest.mark.anyio
@pytest.mark.parametrize(
    "error,code",
    [
        (stripe.AuthenticationError("Invalid API Key provided"), "authentication_error"),
        (stripe.APIConnectionError("Network is unreachable"), "connection_error"),
        (stripe.InvalidRequestError("Amount must be at least 50 cents", "amount"), "stripe_error"),
    ],
)
async def test_stripe_errors_become_failed_results(stripe_service, monkeypatch, error, code):
    def failing_create(**kwargs):
        raise error

    monkeypatch.setattr(stripe.PaymentIntent, "create", failing_create)

    result = await stripe_service.create_payment_intent(0.3)

    assert not result.success
    assert result.error_code == code
    assert result.error_message


@pytest.mark.anyio
async def test_stripe_health_check(stripe_service, monkeypatch):
    monkeypatch.setattr(stripe.Account, "retrieve", lambda: SimpleNamespace(id="acct_1"))
    assert await stripe_service.health_check()

    def unreachable():
        raise stripe.APIConnectionError("down")

    monkeypatch.setattr(stripe.Account, "retrieve", unreachable)
    assert not await stripe_service.health_check()


# =============================================================================
# FACTORY
# =============================================================================

@pytest.fixture
def fresh_factory():
    reset_payment_service()
    yield
    reset_payment_service()


def test_factory_uses_mock_in_development(fresh_factory, settings, monkeypatch):
    monkeypatch.setattr(payment, "get_settings", lambda: settings)

    service = get_payment_service()

    assert isinstance(service, MockPaymentService)
    assert get_payment_service() is service


def test_factory_uses_stripe_in_production(fresh_factory, stripe_settings, monkeypatch):
    monkeypatch.setattr(payment, "get_settings", lambda: stripe_settings)
    monkeypatch.setattr(stripe, "api_key", None)
    monkeypatch.setattr(stripe, "api_version", None)

    assert isinstance(get_payment_service(), StripePaymentService)
