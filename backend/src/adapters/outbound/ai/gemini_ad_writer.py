"""Gemini-backed ad package writer implementing :class:`AdWriterPort`."""
from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError

from backend.src.core.entities.ad_package import PLATFORM_CONSTRAINTS, AdBrief, AdPackage
from backend.src.core.exceptions import GenerationError

logger = logging.getLogger(__name__)


class GeminiAdWriter:
    """Asks Gemini for a JSON ad package and validates it against the schema."""

    def __init__(self, api_key: str, text_model: str = "gemini-2.0-flash") -> None:
        if not api_key:
            raise ValueError(
                "GEMINI_API_KEY is required when ADS_BACKEND=gemini. "
                "Get one at https://aistudio.google.com/apikey"
            )
        self._text_model = text_model

        from google import genai

        self._client = genai.Client(api_key=api_key)
        logger.info("GeminiAdWriter initialised (model=%s)", self._text_model)

    async def write(self, brief: AdBrief, variant_count: int, context: str = "") -> AdPackage:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._write_sync, brief, variant_count, context)

    @staticmethod
    def build_prompt(brief: AdBrief, variant_count: int, context: str) -> str:
        constraint = PLATFORM_CONSTRAINTS[brief.platform]
        return (
            f"{context}\n\n"
            "Write a short-form video ad package for the brief below. Respond with JSON "
            "only, using camelCase keys: {\"brief\", \"baseScript\", \"variants\"}. "
            "A script has hook, beats (tStart, tEnd, voiceover, onScreenText, overlay, "
            "shotNotes), cta, captions, hashtags and complianceNotes. Each variant has id, "
            "tone (playful|bold|authoritative|friendly|luxury), hookRewrite, ctaRewrite, "
            "platform and script.\n\n"
            f"Produce exactly {variant_count} variants. Beats must lie within "
            f"0..{brief.duration_sec} seconds. Captions must not exceed "
            f"{constraint.max_caption_length} characters. Keep overlays inside the central "
            f"{int(constraint.safe_area_percent * 100)}% safe area.\n\n"
            f"BRIEF:\n{brief.model_dump_json(by_alias=True, exclude={'brief_context'})}"
        )

    def _write_sync(self, brief: AdBrief, variant_count: int, context: str) -> AdPackage:
        from google.genai import types

        try:
            response = self._client.models.generate_content(
                model=self._text_model,
                contents=self.build_prompt(brief, variant_count, context),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=0.7,
                ),
            )
        except Exception as exc:
            logger.error("Gemini ad generation failed for %s: %s", brief.brand, exc)
            raise GenerationError(str(exc)) from exc

        try:
            data = json.loads(response.text)
            data["brief"] = brief.model_dump(by_alias=True)
            package = AdPackage.model_validate(data)
        except (json.JSONDecodeError, TypeError, ValidationError) as exc:
            logger.error("Gemini returned an invalid ad package for %s: %s", brief.brand, exc)
            raise GenerationError(f"Model returned an invalid ad package: {exc}") from exc

        logger.info("Gemini wrote ad package for %s (%d variants)", brief.brand, len(package.variants))
        return package
