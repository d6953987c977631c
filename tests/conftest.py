"""
Pytest configuration and fixtures.
"""

import asyncio
import base64
import os
import tempfile
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "true"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-32chars!"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="nanobanana-test-")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("GOOGLE_API_KEY", None)

# 1x1 PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def run_async(coro):
    """Run a coroutine on a private event loop (for sync fixtures)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ============ Mock Redis ============


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._expiry: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ex: int | None = None,
        nx: bool = False,
    ) -> bool | None:
        if nx and key in self._data:
            return None
        self._data[key] = value
        if ex:
            self._expiry[key] = ex
        return True

    async def ttl(self, key: str) -> int:
        if key not in self._data:
            return -2
        return self._expiry.get(key, -1)

    async def delete(self, *keys: str) -> int:
        count = 0
        for key in keys:
            if key in self._data:
                del self._data[key]
                self._expiry.pop(key, None)
                count += 1
        return count

    async def exists(self, key: str) -> int:
        return 1 if key in self._data else 0

    async def ping(self) -> bool:
        return True

    async def aclose(self):
        pass


@pytest.fixture
def mock_redis():
    """Create a mock Redis instance."""
    return MockRedis()


@pytest.fixture
def mock_redis_fixture(mock_redis):
    """Fixture that patches get_redis to return mock."""

    async def get_mock_redis():
        return mock_redis

    with patch("core.redis.get_redis", get_mock_redis):
        with patch("services.generation_service.get_redis", get_mock_redis):
            with patch("services.chat_session.get_redis", get_mock_redis):
                with patch("services.stripe_webhooks.get_redis", get_mock_redis):
                    yield mock_redis


# ============ Database ============


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database with all tables for one test."""
    from database import close_database, create_all_tables, init_database

    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    run_async(init_database(url))
    run_async(create_all_tables())
    yield url
    run_async(close_database())


@pytest.fixture
async def db_session(database) -> AsyncGenerator:
    """Async session bound to the test database."""
    from database import get_session_factory

    async with get_session_factory()() as session:
        yield session


async def _create_user(**fields):
    from database import get_session_factory
    from database.repositories import UserRepository

    async with get_session_factory()() as session:
        user = await UserRepository(session).create(**fields)
        await session.commit()
        return user


@pytest.fixture
def make_user(database):
    """Factory for users committed to the test database."""

    def factory(**fields):
        fields.setdefault("apple_id", f"apple-{os.urandom(6).hex()}")
        fields.setdefault("email", "user@example.com")
        fields.setdefault("credits", 40)
        fields.setdefault("free_attempts", 0)
        return run_async(_create_user(**fields))

    return factory


@pytest.fixture
def user(make_user):
    """Default test user: 40 credits, no free attempts."""
    return make_user(display_name="Test User")


def token_for(user) -> str:
    from core.security import create_user_token

    return create_user_token(str(user.id), apple_id=user.apple_id, email=user.email)


@pytest.fixture
def auth_headers(user):
    """Bearer headers for the default test user."""
    return {"Authorization": f"Bearer {token_for(user)}"}


def fetch(model, object_id):
    """Load a row in a fresh session (sees committed state only)."""
    from database import get_session_factory

    async def load():
        async with get_session_factory()() as session:
            return await session.get(model, object_id)

    return run_async(load())


def fetch_all(statement):
    from database import get_session_factory

    async def load():
        async with get_session_factory()() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    return run_async(load())


# ============ App Fixtures ============


@pytest.fixture
def app():
    from api.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, database, mock_redis_fixture) -> TestClient:
    """Synchronous test client against the SQLite database."""
    return TestClient(app)


# ============ Fake Vendors ============


class FakeImageProvider:
    """Image provider double returning a fixed result."""

    def __init__(self, result=None):
        from services.providers import GenerationResult

        self.result = result or GenerationResult(
            success=True,
            image_data=PNG_BYTES,
            mime_type="image/png",
            provider="fake",
            model="fake-image-model",
            attempts=1,
            duration=0.1,
        )
        self.requests = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def is_available(self) -> bool:
        return True

    async def generate(self, request):
        self.requests.append(request)
        return self.result

    async def health_check(self) -> dict:
        return {"status": "healthy", "response_time_ms": 1}


@pytest.fixture
def image_provider():
    return FakeImageProvider()


@pytest.fixture
def use_image_provider(app, image_provider):
    """Route /api/generate through the fake provider."""
    from api.dependencies import get_generation_service
    from database import get_session
    from services import GenerationService

    async def override(session=Depends(get_session)):
        return GenerationService(session, provider=image_provider)

    app.dependency_overrides[get_generation_service] = override
    return image_provider


@pytest.fixture
def stripe_service():
    """StripeService with every API call mocked."""
    from services import StripeService

    service = StripeService(api_key="sk_test_123", webhook_secret="whsec_test_secret")
    service.create_customer = AsyncMock(return_value="cus_test123")
    service.create_checkout_session = AsyncMock(
        return_value={"id": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}
    )
    service.retrieve_checkout_session = AsyncMock()
    service.retrieve_subscription = AsyncMock()
    service.set_cancel_at_period_end = AsyncMock()
    service.cancel_subscription = AsyncMock(return_value={"id": "sub_test", "status": "canceled"})
    service.create_portal_session = AsyncMock(return_value="https://billing.stripe.com/p/session/test")
    return service


@pytest.fixture
def use_stripe(app, stripe_service):
    from api.dependencies import get_stripe

    app.dependency_overrides[get_stripe] = lambda: stripe_service
    return stripe_service


# ============ Test Settings ============


@pytest.fixture
def settings():
    """Cached application settings; patch attributes with patch.object."""
    from core.config import get_settings

    return get_settings()
