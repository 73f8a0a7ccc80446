"""Unit tests for the fal.ai queue adapter."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from backend.src.adapters.outbound.ai.fal_queue import FalQueueProvider, decode_submit_response
from backend.src.core.entities.generation_job import JobKind
from backend.src.core.exceptions import GenerationError
from backend.src.core.value_objects.generation_request import GenerationRequest
from backend.src.core.value_objects.provider_response import (
    Immediate,
    PollState,
    Queued,
    QueueHandle,
)

BASE = "https://queue.fal.run"
HANDLE = QueueHandle(
    request_id="req-9",
    status_url=f"{BASE}/fal-ai/veo3/fast/requests/req-9/status",
    response_url=f"{BASE}/fal-ai/veo3/fast/requests/req-9",
)


def _response(status_code=200, json_data=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = json_data or {}
    resp.text = text
    return resp


class TestDecodeSubmitResponse:
    def test_request_id_means_queued(self):
        decoded = decode_submit_response({"request_id": "req-9"}, BASE, "fal-ai/veo3/fast")

        assert isinstance(decoded, Queued)
        assert decoded.handle == HANDLE

    def test_explicit_urls_win(self):
        decoded = decode_submit_response(
            {"request_id": "r", "status_url": "https://s", "response_url": "https://r"},
            BASE,
            "m",
        )
        assert decoded.handle.status_url == "https://s"
        assert decoded.handle.response_url == "https://r"

    def test_result_payload_means_immediate(self):
        data = {"request_id": "r", "video": {"url": "https://cdn/v.mp4"}}
        decoded = decode_submit_response(data, BASE, "m")
        assert decoded == Immediate(result=data)


class TestBuildPayload:
    def test_video_payload(self, png_image):
        payload = FalQueueProvider.build_payload(
            GenerationRequest(
                kind=JobKind.VIDEO,
                prompt="surfing banana",
                images=(png_image,),
                options={"aspect_ratio": "9:16", "duration": "8s"},
            )
        )
        assert payload["prompt"] == "surfing banana"
        assert payload["aspect_ratio"] == "9:16"
        assert payload["image_url"].startswith("data:image/png;base64,")

    def test_upscale_payload(self, png_image):
        payload = FalQueueProvider.build_payload(
            GenerationRequest(kind=JobKind.UPSCALE, images=(png_image,), options={"scale": 4})
        )
        assert payload["scale"] == 4

    def test_stitch_payload(self):
        payload = FalQueueProvider.build_payload(
            GenerationRequest(kind=JobKind.STITCH, video_urls=("a", "b"))
        )
        assert payload["video_urls"] == ["a", "b"]

    def test_image_kind_rejected(self):
        with pytest.raises(ValueError):
            FalQueueProvider.build_payload(GenerationRequest(kind=JobKind.IMAGE))


class TestFalQueueProvider:
    def test_requires_key(self):
        with pytest.raises(ValueError, match="FAL_KEY"):
            FalQueueProvider(api_key="")

    @pytest.mark.asyncio
    async def test_submit_sends_key_header(self):
        provider = FalQueueProvider(api_key="secret")
        with patch(
            "backend.src.adapters.outbound.ai.fal_queue.requests.post",
            return_value=_response(json_data={"request_id": "req-9"}),
        ) as post:
            decoded = await provider.submit(GenerationRequest(kind=JobKind.VIDEO, prompt="p"))

        assert decoded == Queued(HANDLE)
        url = post.call_args.args[0]
        assert url == f"{BASE}/fal-ai/veo3/fast"
        assert post.call_args.kwargs["headers"]["Authorization"] == "Key secret"

    @pytest.mark.asyncio
    async def test_submit_http_error(self):
        provider = FalQueueProvider(api_key="secret")
        with patch(
            "backend.src.adapters.outbound.ai.fal_queue.requests.post",
            return_value=_response(status_code=422, text="bad prompt"),
        ):
            with pytest.raises(GenerationError, match="FAL API error: 422 - bad prompt"):
                await provider.submit(GenerationRequest(kind=JobKind.VIDEO, prompt="p"))

    @pytest.mark.asyncio
    async def test_poll_completed_fetches_result(self):
        provider = FalQueueProvider(api_key="secret")
        responses = [
            _response(json_data={"status": "COMPLETED"}),
            _response(json_data={"video": {"url": "https://cdn/v.mp4"}}),
        ]
        with patch(
            "backend.src.adapters.outbound.ai.fal_queue.requests.get", side_effect=responses
        ) as get:
            status = await provider.poll(HANDLE)

        assert status.state == PollState.COMPLETED
        assert status.result == {"video": {"url": "https://cdn/v.mp4"}}
        assert [c.args[0] for c in get.call_args_list] == [HANDLE.status_url, HANDLE.response_url]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("IN_QUEUE", PollState.IN_QUEUE),
            ("IN_PROGRESS", PollState.IN_PROGRESS),
            ("in_progress", PollState.IN_PROGRESS),
            ("SOMETHING_NEW", PollState.IN_PROGRESS),
        ],
    )
    async def test_poll_pending_states(self, raw, expected):
        provider = FalQueueProvider(api_key="secret")
        with patch(
            "backend.src.adapters.outbound.ai.fal_queue.requests.get",
            return_value=_response(json_data={"status": raw}),
        ):
            status = await provider.poll(HANDLE)
        assert status.state == expected

    @pytest.mark.asyncio
    async def test_poll_failed_carries_provider_error(self):
        provider = FalQueueProvider(api_key="secret")
        with patch(
            "backend.src.adapters.outbound.ai.fal_queue.requests.get",
            return_value=_response(json_data={"status": "FAILED", "error": "NSFW content"}),
        ):
            status = await provider.poll(HANDLE)

        assert status.state == PollState.FAILED
        assert status.error == "NSFW content"
