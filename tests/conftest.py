"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - api_config: Backend configuration pointing at a test host
    - fake_backend: In-memory chat backend served over ASGITransport
    - store: Conversation store wired to the fake backend
    - async_client: HTTPX client for API testing
    - session_id: A canonical session UUID

Async fixtures clean up FastAPI dependency overrides after each test.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from src.api import app
from src.client.config import ApiConfig
from src.store.conversation_store import ConversationSessionStore
from tests.mocks.fake_chat_backend import FakeChatBackend

TEST_HOST = "backend.test:8000"
TEST_API_KEY = "test-api-key"
TEST_USER = "user-1"


@pytest.fixture
def api_config() -> ApiConfig:
    """Return backend configuration for tests (direct mode, no proxy).

    Returns:
        ApiConfig pointing at the fake backend host.
    """
    return ApiConfig(
        host=TEST_HOST,
        default_api_key=TEST_API_KEY,
        use_proxy=False,
        proxy_base_url="http://app.test",
        auth_api_url="http://auth.test/api",
    )


@pytest.fixture
def fake_backend() -> FakeChatBackend:
    """Return a fresh in-memory chat backend."""
    return FakeChatBackend()


@pytest.fixture
def store(fake_backend: FakeChatBackend, api_config: ApiConfig) -> ConversationSessionStore:
    """Create a store for TEST_USER talking to the fake backend.

    Args:
        fake_backend: Backend the store's requests are routed to.
        api_config: Backend configuration.

    Returns:
        Store with no conversations and no sessions loaded.
    """
    store = ConversationSessionStore(config=api_config, transport=fake_backend.transport())
    store.set_user_id(TEST_USER)
    return store


@pytest.fixture
def session_id() -> str:
    """Return a canonical session UUID."""
    return "11111111-1111-1111-1111-111111111111"


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
