"""Integration test fixtures for API testing."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport

from backend.src.adapters.inbound.fastapi_app import app
from backend.src.infrastructure.config import (
    FalSettings,
    GeminiSettings,
    PollingSettings,
    RateLimitSettings,
    Settings,
    StorageSettings,
)
from backend.src.infrastructure.container import ApplicationContainer


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings with in-memory backends and no remote providers."""
    settings = Settings(
        app_env="test",
        api_key=None,
        persistence_backend="memory",
        fal=FalSettings(key=""),
        gemini=GeminiSettings(api_key=""),
        polling=PollingSettings(interval_seconds=0.0),
        rate_limit=RateLimitSettings(min_interval_seconds=0.0),
        storage=StorageSettings(upload_dir=str(tmp_path / "uploads")),
    )
    return settings


@pytest.fixture
def fal_provider():
    """Stands in for fal.ai; answers every submit immediately."""
    from backend.src.core.value_objects.provider_response import Immediate

    provider = AsyncMock()
    provider.submit.return_value = Immediate({"video": {"url": "https://cdn.test/out.mp4"}})
    return provider


@pytest.fixture
def test_container(test_settings, fal_provider):
    """Create a test container with a mocked generation provider."""
    container = ApplicationContainer(test_settings)
    container.override("fal_provider", fal_provider)
    return container


@pytest.fixture
async def async_client(test_container):
    """Create an async test client for the FastAPI app."""
    app.state.container = test_container

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await test_container.shutdown()
