"""Adapter for fal.ai queue endpoints (video, upscale, stitch).

Implements :class:`GenerationProviderPort`. Submits go to
``{base_url}/{model}``; the queue answers with a request id plus status and
response URLs which the orchestrator polls through :meth:`poll`.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import requests

from backend.src.core.entities.generation_job import JobKind
from backend.src.core.exceptions import GenerationError
from backend.src.core.value_objects.generation_request import GenerationRequest
from backend.src.core.value_objects.provider_response import (
    Immediate,
    PollState,
    PollStatus,
    ProviderResponse,
    Queued,
    QueueHandle,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://queue.fal.run"
DEFAULT_MODELS = {
    JobKind.VIDEO: "fal-ai/veo3/fast",
    JobKind.UPSCALE: "fal-ai/clarity-upscaler",
    JobKind.STITCH: "fal-ai/ffmpeg-api/merge-videos",
}

# Keys that mark a submit response as an already finished result.
_RESULT_KEYS = ("video", "image", "images")


def decode_submit_response(data: dict[str, Any], base_url: str, model: str) -> ProviderResponse:
    """Turn a raw submit response into :class:`Immediate` or :class:`Queued`."""
    request_id = data.get("request_id")
    if request_id and not any(key in data for key in _RESULT_KEYS):
        return Queued(
            QueueHandle(
                request_id=request_id,
                status_url=data.get("status_url") or f"{base_url}/{model}/requests/{request_id}/status",
                response_url=data.get("response_url") or f"{base_url}/{model}/requests/{request_id}",
            )
        )
    return Immediate(result=data)


class FalQueueProvider:
    """Calls fal.ai over HTTP with ``requests`` in a worker thread."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        models: Optional[dict[JobKind, str]] = None,
        timeout: int = 60,
    ) -> None:
        if not api_key:
            raise ValueError(
                "FAL_KEY is required for video, upscale and stitch generation. "
                "Get one at https://fal.ai/dashboard/keys"
            )
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._models = {**DEFAULT_MODELS, **(models or {})}
        self._timeout = timeout
        logger.info("FalQueueProvider initialised (base_url=%s)", self._base_url)

    # -- GenerationProviderPort ------------------------------------------------

    async def submit(self, request: GenerationRequest) -> ProviderResponse:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._submit_sync, request)

    async def poll(self, handle: QueueHandle) -> PollStatus:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._poll_sync, handle)

    # -- Request shaping -------------------------------------------------------

    @staticmethod
    def build_payload(request: GenerationRequest) -> dict[str, Any]:
        if request.kind == JobKind.VIDEO:
            payload: dict[str, Any] = {
                "prompt": request.prompt,
                "aspect_ratio": request.option("aspect_ratio", "16:9"),
                "duration": request.option("duration", "8s"),
                "enhance_prompt": True,
                "auto_fix": True,
                "resolution": request.option("resolution", "720p"),
                "generate_audio": request.option("generate_audio", True),
            }
            if request.images:
                payload["image_url"] = request.images[0].data_url()
            return payload

        if request.kind == JobKind.UPSCALE:
            if not request.images:
                raise ValueError("Upscale requires an input image")
            return {
                "image_url": request.images[0].data_url(),
                "scale": request.option("scale", 2),
                "dynamic": 6,
                "creativity": 0.35,
                "resemblance": 0.6,
                "fractality": 0.8,
            }

        if request.kind == JobKind.STITCH:
            return {
                "video_urls": list(request.video_urls),
                "resolution": request.option("resolution", "landscape_16_9"),
            }

        raise ValueError(f"fal provider does not handle job kind '{request.kind.value}'")

    # -- HTTP helpers ----------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Key {self._api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _check(resp: requests.Response) -> dict[str, Any]:
        if not resp.ok:
            raise GenerationError(f"FAL API error: {resp.status_code} - {resp.text}")
        return resp.json()

    def _submit_sync(self, request: GenerationRequest) -> ProviderResponse:
        model = self._models[request.kind]
        payload = self.build_payload(request)
        url = f"{self._base_url}/{model}"
        logger.info("Submitting %s job to %s", request.kind.value, model)
        resp = requests.post(url, json=payload, headers=self._headers(), timeout=self._timeout)
        decoded = decode_submit_response(self._check(resp), self._base_url, model)
        if isinstance(decoded, Queued):
            logger.info("fal queued %s job as %s", request.kind.value, decoded.handle.request_id)
        return decoded

    def _poll_sync(self, handle: QueueHandle) -> PollStatus:
        resp = requests.get(handle.status_url, headers=self._headers(), timeout=self._timeout)
        data = self._check(resp)
        status = str(data.get("status", "")).upper()
        logger.debug("fal request %s status=%s", handle.request_id, status)

        if status == PollState.COMPLETED.value:
            result_resp = requests.get(
                handle.response_url, headers=self._headers(), timeout=self._timeout
            )
            return PollStatus(state=PollState.COMPLETED, result=self._check(result_resp))
        if status in (PollState.FAILED.value, "ERROR"):
            return PollStatus(
                state=PollState.FAILED,
                error=str(data.get("error") or "Generation failed"),
            )
        if status == PollState.IN_QUEUE.value:
            return PollStatus(state=PollState.IN_QUEUE)
        return PollStatus(state=PollState.IN_PROGRESS)
