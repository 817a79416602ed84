"""Pytest configuration and fixtures for the kinfeed search service.

Environment is set before kinfeed.main is imported: Redis and telemetry are
off, and the database is only used by tests marked requires_db.
"""

import os
from collections.abc import Iterator
from unittest.mock import AsyncMock

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-kinfeed-search")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from kinfeed.api.v1.dependencies import get_search_analytics_repo, get_search_repo
from kinfeed.core.config import get_settings
from kinfeed.core.limiter import limiter
from kinfeed.infrastructure.security.jwt import create_access_token
from kinfeed.main import app as kinfeed_app

TEST_USER_ID = "7f3c2a1e-0000-4000-8000-000000000001"  # sub of auth_headers


@pytest.fixture(autouse=True)
def _disable_rate_limits() -> Iterator[None]:
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def search_repo() -> AsyncMock:
    """Search repository double; every fetcher returns no rows unless a test says otherwise."""
    repo = AsyncMock()
    for name in (
        "search_memories",
        "search_comments",
        "search_children",
        "search_recipients",
        "search_groups",
    ):
        getattr(repo, name).return_value = []
    return repo


@pytest.fixture
def analytics_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.record.return_value = "a1"
    return repo


@pytest.fixture
def app(search_repo: AsyncMock, analytics_repo: AsyncMock) -> Iterator[FastAPI]:
    """The app with repositories replaced by mocks (no database needed)."""
    kinfeed_app.dependency_overrides[get_search_repo] = lambda: search_repo
    kinfeed_app.dependency_overrides[get_search_analytics_repo] = lambda: analytics_repo
    yield kinfeed_app
    kinfeed_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Bearer header for TEST_USER_ID signed with the test SECRET_KEY."""
    return {"Authorization": f"Bearer {create_access_token(TEST_USER_ID)}"}


@pytest.fixture
def session_factory():
    """Real async session factory; skips when DATABASE_URL is not set."""
    from kinfeed.infrastructure.persistence import database

    if not get_settings().database_url:
        pytest.skip("Postgres not configured: set DATABASE_URL")
    return database.get_session_factory()
