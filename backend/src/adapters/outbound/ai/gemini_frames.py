"""Adapter wrapping Google Gemini for frame edits and edit suggestions.

Uses the google-genai SDK. Implements :class:`FrameVisionPort`.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from backend.src.core.entities.frame import Frame, FrameSuggestion
from backend.src.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = (
    "You are a creative video editor's assistant. Analyze these video frames and "
    "provide suggestions for edits that would make a short video clip more engaging "
    "for marketing. Identify key moments or objects. Provide a list of suggestions in "
    "JSON format with frameIndex and suggestion fields."
)


def extract_inline_image(response: Any) -> Optional[tuple[bytes, str]]:
    """Return ``(data, mime_type)`` of the first inline image part, if any."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return inline.data, inline.mime_type or "image/png"
    return None


def fallback_suggestions(count: int) -> list[FrameSuggestion]:
    return [
        FrameSuggestion(
            frame_index=i,
            suggestion=f"Consider enhancing frame {i + 1} with creative effects or text overlays",
        )
        for i in range(count)
    ]


def parse_suggestions(raw_text: str, count: int) -> list[FrameSuggestion]:
    """Parse the model's JSON; fall back to one generic suggestion per frame."""
    try:
        data = json.loads(raw_text or "[]")
        if isinstance(data, dict):
            data = data.get("suggestions", [])
        suggestions = [
            FrameSuggestion(frame_index=int(item["frameIndex"]), suggestion=str(item["suggestion"]))
            for item in data
        ]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        logger.warning("Failed to parse Gemini suggestions, providing fallback suggestions")
        return fallback_suggestions(count)
    return [s for s in suggestions if 0 <= s.frame_index < count]


class GeminiFrameVision:
    """Edits single frames and suggests edits across a set of frames."""

    def __init__(
        self,
        api_key: str,
        edit_model: str = "gemini-2.5-flash-image-preview",
        vision_model: str = "gemini-2.0-flash",
    ) -> None:
        if not api_key:
            raise ValueError(
                "GEMINI_API_KEY is required for frame editing. "
                "Get one at https://aistudio.google.com/apikey"
            )
        self._edit_model = edit_model
        self._vision_model = vision_model

        from google import genai

        self._client = genai.Client(api_key=api_key)
        logger.info(
            "GeminiFrameVision initialised (edit_model=%s, vision_model=%s)",
            self._edit_model, self._vision_model,
        )

    # ------------------------------------------------------------------
    # FrameVisionPort interface
    # ------------------------------------------------------------------

    async def edit_frame(self, frame: Frame, prompt: str) -> Frame:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._edit_frame_sync, frame, prompt)

    async def analyze_frames(self, frames: list[Frame]) -> list[FrameSuggestion]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._analyze_frames_sync, frames)

    # ------------------------------------------------------------------
    # Internal / synchronous helpers
    # ------------------------------------------------------------------

    def _edit_frame_sync(self, frame: Frame, prompt: str) -> Frame:
        from google.genai import types

        try:
            response = self._client.models.generate_content(
                model=self._edit_model,
                contents=[
                    types.Part.from_bytes(data=frame.image_data, mime_type=frame.mime_type),
                    prompt,
                ],
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
        except Exception as exc:
            logger.error("Gemini edit failed for frame %d: %s", frame.id, exc)
            raise GenerationError(str(exc)) from exc

        image = extract_inline_image(response)
        if image is None:
            raise GenerationError("No image was returned from the edit request")
        data, mime_type = image
        logger.info("Edited frame %d (%d bytes, %s)", frame.id, len(data), mime_type)
        return frame.with_image(data, mime_type)

    def _analyze_frames_sync(self, frames: list[Frame]) -> list[FrameSuggestion]:
        from google.genai import types

        parts: list[Any] = [ANALYSIS_PROMPT]
        parts.extend(types.Part.from_bytes(data=f.image_data, mime_type=f.mime_type) for f in frames)
        try:
            response = self._client.models.generate_content(
                model=self._vision_model,
                contents=parts,
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            )
        except Exception as exc:
            logger.error("Gemini frame analysis failed (%d frames): %s", len(frames), exc)
            raise GenerationError(str(exc)) from exc

        suggestions = parse_suggestions(response.text, len(frames))
        logger.info("Gemini returned %d suggestions for %d frames", len(suggestions), len(frames))
        return suggestions
