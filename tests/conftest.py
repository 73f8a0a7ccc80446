"""Shared test fixtures for all tests."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from backend.src.core.entities.ad_package import AdBrief, Objective, Platform
from backend.src.core.entities.frame import Frame
from backend.src.core.entities.generation_job import GenerationJob, JobKind
from backend.src.core.services.rate_limiter import MinIntervalGate
from backend.src.core.value_objects.generation_request import GenerationRequest, ImageInput


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ── Frames ─────────────────────────────────────────────────────────────────

@pytest.fixture
def make_frames():
    def _make(count: int, fps: float = 1.0) -> list[Frame]:
        return [
            Frame(id=i, image_data=f"jpeg-{i}".encode(), timestamp_seconds=i / fps)
            for i in range(count)
        ]
    return _make


@pytest.fixture
def png_image() -> ImageInput:
    return ImageInput(data=b"\x89PNG fake", mime_type="image/png", name="sketch.png")


# ── Jobs ───────────────────────────────────────────────────────────────────

@pytest.fixture
def video_job() -> GenerationJob:
    return GenerationJob(kind=JobKind.VIDEO, user_id="user-1")


@pytest.fixture
def video_request() -> GenerationRequest:
    return GenerationRequest(kind=JobKind.VIDEO, prompt="a banana surfing at sunset")


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


# ── Rate limiting ──────────────────────────────────────────────────────────

@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def open_gate() -> MinIntervalGate:
    """A gate that never blocks."""
    return MinIntervalGate(0.0)


# ── Ads ────────────────────────────────────────────────────────────────────

@pytest.fixture
def sample_brief() -> AdBrief:
    return AdBrief(
        brand="Acme",
        product="Rocket Skates",
        value_prop="Twice as fast as walking",
        audience="busy commuters",
        objective=Objective.CONVERSION,
        platform=Platform.TIKTOK,
        duration_sec=15,
    )


# ── Notifications ──────────────────────────────────────────────────────────

@pytest.fixture
def mock_notifier() -> AsyncMock:
    notifier = AsyncMock()
    notifier.send_progress = AsyncMock()
    notifier.send_completion = AsyncMock()
    notifier.send_error = AsyncMock()
    return notifier
