import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient

from bistro.core.config import Settings, get_settings
from bistro.core.security import create_access_token
from bistro.database import get_db
from bistro.main import app
from bistro.mock_database import MockMongoClient
from bistro.models import Collection, UserRole
from bistro.services.payment import MockPaymentService, get_payment_service

TEST_SECRET = "test-secret-do-not-use"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env_mode="development",
        access_token_secret=TEST_SECRET,
        access_token_expire_minutes=60,
        stripe_currency="usd",
    )


@pytest.fixture
def db():
    client = MockMongoClient()
    return client[f"bistro_test_{uuid.uuid4().hex[:8]}"]


@pytest.fixture
def payment_service() -> MockPaymentService:
    return MockPaymentService(failure_rate=0.0, min_latency=0.0, max_latency=0.0)


@pytest.fixture
def client(settings, db, payment_service):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def insert(db):
    """Insert a document straight into a collection and return its id as a string."""
    def _insert(collection: Collection, document: dict) -> str:
        result = asyncio.run(db[collection.value].insert_one(document))
        return str(result.inserted_id)
    return _insert


@pytest.fixture
def count(db):
    def _count(collection: Collection, filter: dict = None) -> int:
        return asyncio.run(db[collection.value].count_documents(filter or {}))
    return _count


@pytest.fixture
def auth_headers(settings):
    def _headers(email: str) -> dict:
        token = create_access_token({"email": email}, settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin(insert, auth_headers):
    """An admin user; returns (user id, request headers)."""
    user_id = insert(Collection.USERS, {"email": "boss@bistro.com", "name": "Boss", "role": UserRole.ADMIN.value})
    return user_id, auth_headers("boss@bistro.com")


@pytest.fixture
def customer(insert, auth_headers):
    """A regular user; returns (user id, request headers)."""
    user_id = insert(Collection.USERS, {"email": "guest@bistro.com", "name": "Guest"})
    return user_id, auth_headers("guest@bistro.com")
