"""
Global pytest fixtures for the Chat Platform test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide an isolated LocalCache (with a deterministic clock) and a
      ChatQueries facade wired to it for unit tests
    - Provide a client already signed in as a guest

Using `create_app()` ensures each test gets fresh in-memory state,
eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.config import AuthConfig
from chat_platform.queries import ChatQueries
from chat_platform.storage.local_cache import LocalCache
from main import create_app

TEST_SECRET = "test-secret-for-session-tokens-0123456789"


class FakeClock:
    """Returns a strictly increasing time, one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(clock: FakeClock) -> LocalCache:
    """Fresh local cache driven by the fake clock."""
    return LocalCache(clock=clock)


@pytest.fixture
def queries(storage: LocalCache) -> ChatQueries:
    return ChatQueries(storage)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(secret=TEST_SECRET)


@pytest.fixture
def app(auth_config: AuthConfig):
    return create_app(storage=LocalCache(), auth_config=auth_config)


@pytest.fixture
def client(app) -> TestClient:
    """Fresh TestClient with a new app instance (no session)."""
    return TestClient(app)


@pytest.fixture
def guest_client(client: TestClient) -> TestClient:
    """TestClient holding a guest session cookie."""
    resp = client.get("/api/auth/guest", follow_redirects=False)
    assert resp.status_code == 302
    return client


@pytest.fixture
def register():
    """Register (and sign in) a regular user on the given client."""

    def _register(client: TestClient, email: str = "user@example.com", password: str = "s3cret-pass") -> dict:
        resp = client.post("/api/auth/register", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _register
