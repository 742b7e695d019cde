# tests/routes/conftest.py
"""Pytest fixtures for route tests."""

from collections.abc import AsyncGenerator, Generator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from halqa.configs import Settings, get_settings
from halqa.db import get_session
from halqa.dependencies.dependencies import get_blob_store_dep
from halqa.main import app
from halqa.managers.cache_manager import CacheManager
from halqa.managers.rate_limiter import limiter
from halqa.managers.warming_log import WarmingLog


async def _no_session() -> AsyncGenerator[AsyncMock]:
    yield AsyncMock()


@pytest.fixture(autouse=True)
def app_state(
    test_settings: Settings,
    cache_manager: CacheManager,
    blob_store: object,
) -> Generator[None]:
    """Wire app state and the overrides every route test needs."""
    app.state.cache_manager = cache_manager
    app.state.warming_log = WarmingLog(maxlen=10)

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_session] = _no_session
    app.dependency_overrides[get_blob_store_dep] = lambda: blob_store

    yield

    app.dependency_overrides = {}


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing."""
    limiter.enabled = False
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac
    limiter.enabled = True


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def mock_author_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_post_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_setting_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_preference_repo() -> AsyncMock:
    return AsyncMock()
