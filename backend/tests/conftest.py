"""
SnipKeep Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own temporary data directory, so users.json and
       snippets.json never leak between tests.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings pointing at tmp_path
    ├── record_store: RecordStore over the temp data directory
    ├── session_store: InMemorySessionStore driven by a FakeClock
    ├── snippet_service / auth_service: services over the stores above
    ├── app: FastAPI app built by create_app(test_settings)
    └── test_client / make_client: HTTPX AsyncClients for endpoint tests
"""

import os

# Keep the module-level settings singleton away from any developer .env
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from snipkeep.config import Settings
from snipkeep.main import create_app
from snipkeep.services.auth_service import AuthService
from snipkeep.services.record_store import RecordStore
from snipkeep.services.session_store import InMemorySessionStore
from snipkeep.services.snippet_service import SnippetService


class FakeClock:
    """Manually advanced time source, in seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TickingMillis:
    """Millisecond clock that moves forward 1ms per call, or by preset steps."""

    def __init__(self, start: int = 1_700_000_000_000, steps: Optional[List[int]] = None):
        self.now = start
        self.steps = list(steps or [])

    def __call__(self) -> int:
        self.now += self.steps.pop(0) if self.steps else 1
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        log_level="WARNING",
        rate_limit_requests=10000,
        rate_limit_window=60,
    )


@pytest.fixture
def record_store(test_settings) -> RecordStore:
    return RecordStore(test_settings.data_dir)


@pytest.fixture
def session_store(clock) -> InMemorySessionStore:
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def snippet_service(record_store) -> SnippetService:
    return SnippetService(record_store, clock=TickingMillis())


@pytest.fixture
def auth_service(record_store, session_store) -> AuthService:
    return AuthService(record_store, session_store, session_ttl=3600)


@pytest.fixture
def app(test_settings, session_store):
    return create_app(settings=test_settings, session_store=session_store)


@pytest.fixture
def make_client(app) -> Callable[[], AsyncClient]:
    """
    Factory for independent clients against the same app.

    Each client has its own cookie jar, i.e. its own login session.
    """
    def _make() -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    return _make


@pytest_asyncio.fixture
async def test_client(make_client):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    async with make_client() as client:
        yield client


@pytest.fixture
def register_and_login():
    """Registers a user through the API and logs the given client in as them."""
    async def _register_and_login(client: AsyncClient, username: str, password: str = "s3cret!") -> None:
        r = await client.post("/register", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        r = await client.post("/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
    return _register_and_login
