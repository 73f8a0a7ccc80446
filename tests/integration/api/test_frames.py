"""Integration tests for the frame editing API."""
from __future__ import annotations

from unittest.mock import AsyncMock

import cv2
import numpy as np
import pytest

from backend.src.core.entities.frame import FrameSuggestion


@pytest.fixture
def video_bytes(tmp_path):
    """A 4 second 5 fps MJPG clip."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 5, (32, 24))
    for i in range(20):
        writer.write(np.full((24, 32, 3), i * 10, dtype=np.uint8))
    writer.release()
    return path.read_bytes()


@pytest.fixture
def frame_vision(test_container):
    vision = AsyncMock()

    async def edit(frame, prompt):
        return frame.with_image(b"\x89PNG edited", "image/png")

    vision.edit_frame.side_effect = edit
    vision.analyze_frames.return_value = [FrameSuggestion(frame_index=0, suggestion="Add a title")]
    test_container.override("frame_vision", vision)
    return vision


async def _start(client, video_bytes, **form):
    response = await client.post(
        "/api/frames/sessions",
        files={"file": ("clip.avi", video_bytes, "video/x-msvideo")},
        data={k: str(v) for k, v in form.items()},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestFrameSessionsAPI:
    @pytest.mark.asyncio
    async def test_upload_extracts_frames(self, async_client, video_bytes):
        session = await _start(async_client, video_bytes, fps=1)

        assert session["frame_count"] == 4
        assert [f["timestamp_seconds"] for f in session["frames"]] == [0.0, 1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_trim_window(self, async_client, video_bytes):
        session = await _start(async_client, video_bytes, fps=2, start=1, end=2)
        assert [f["timestamp_seconds"] for f in session["frames"]] == [1.0, 1.5]

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, async_client, video_bytes):
        response = await async_client.post(
            "/api/frames/sessions",
            files={"file": ("clip.avi", video_bytes, "video/x-msvideo")},
            data={"start": "3", "end": "1"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, async_client):
        response = await async_client.post(
            "/api/frames/sessions", files={"file": ("notes.txt", b"hi", "text/plain")}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_corrupt_video(self, async_client):
        response = await async_client.post(
            "/api/frames/sessions", files={"file": ("broken.mp4", b"not a video", "video/mp4")}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_frame_image_download(self, async_client, video_bytes):
        session = await _start(async_client, video_bytes)

        response = await async_client.get(f"/api/frames/sessions/{session['id']}/frames/0")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content[:2] == b"\xff\xd8"

    @pytest.mark.asyncio
    async def test_frame_index_out_of_range(self, async_client, video_bytes):
        session = await _start(async_client, video_bytes)
        response = await async_client.get(f"/api/frames/sessions/{session['id']}/frames/99")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_edit_and_revert(self, async_client, video_bytes, frame_vision):
        session = await _start(async_client, video_bytes)
        base = f"/api/frames/sessions/{session['id']}/frames/1"

        edited = await async_client.post(f"{base}/edit", json={"prompt": "make it snow"})
        assert edited.status_code == 200
        assert edited.json()["edited"] is True

        current = await async_client.get(base)
        original = await async_client.get(base, params={"original": "true"})
        assert current.content == b"\x89PNG edited"
        assert original.content[:2] == b"\xff\xd8"

        reverted = await async_client.delete(f"{base}/edit")
        assert reverted.json() == {"id": 1, "reverted": True}

    @pytest.mark.asyncio
    async def test_edit_without_vision_configured(self, async_client, video_bytes):
        session = await _start(async_client, video_bytes)
        response = await async_client.post(
            f"/api/frames/sessions/{session['id']}/frames/0/edit", json={"prompt": "x"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_analyze(self, async_client, video_bytes, frame_vision):
        session = await _start(async_client, video_bytes)

        response = await async_client.post(f"/api/frames/sessions/{session['id']}/analyze")

        assert response.status_code == 200
        assert response.json() == {"suggestions": [{"frame_index": 0, "suggestion": "Add a title"}]}

    @pytest.mark.asyncio
    async def test_discard_session(self, async_client, video_bytes):
        session = await _start(async_client, video_bytes)

        deleted = await async_client.delete(f"/api/frames/sessions/{session['id']}")
        assert deleted.status_code == 200
        missing = await async_client.get(f"/api/frames/sessions/{session['id']}")
        assert missing.status_code == 404
