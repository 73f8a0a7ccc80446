"""Gemini image generation from a sketch plus reference images.

Implements :class:`GenerationProviderPort` for ``JobKind.IMAGE``. Gemini
answers synchronously, so every submit decodes to :class:`Immediate`.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any

from backend.src.adapters.outbound.ai.gemini_frames import extract_inline_image
from backend.src.core.exceptions import GenerationError
from backend.src.core.value_objects.generation_request import (
    GenerationRequest,
    missing_description_fields,
)
from backend.src.core.value_objects.provider_response import (
    Immediate,
    PollStatus,
    ProviderResponse,
    QueueHandle,
)

logger = logging.getLogger(__name__)

VARIATION_FOCUS = (
    "Focus on the main subject with dramatic lighting and close-up details.",
    "Emphasize the environment and atmosphere with wide composition.",
    "Highlight the composition and spatial relationships between elements.",
    "Focus on color harmony and mood with artistic lighting effects.",
    "Emphasize texture and material details with sharp focus.",
)


def build_generation_prompt(description: dict[str, Any]) -> str:
    return (
        "Create a photorealistic image with the following specifications:\n\n"
        f"Setting: {description['setting']}\n"
        f"Subjects: {description['subjects']}\n"
        f"Composition: {description['composition']}\n"
        f"Environment: {description['environment']}\n"
        f"Lighting: {description['lighting']}\n"
        f"Focal Points: {description['focal_points']}\n"
        f"Mood: {description['mood']}\n\n"
        "Please generate a high-quality, detailed image that captures all these elements harmoniously."
    )


def build_variation_prompt(base_prompt: str, index: int) -> str:
    return (
        "You are Nano Banana, an advanced AI image generator. Based on the provided "
        "doodle sketch and reference image, generate a photorealistic image that matches "
        "the detailed brief below.\n\n"
        f"{base_prompt}\n\n"
        "Reference Images Context:\n"
        "- Image 1 (Doodle): User's concept sketch showing layout/composition\n"
        "- Image 2 (Reference): Location/product reference for style and atmosphere\n\n"
        "Instructions:\n"
        "1) Use the doodle as the composition guide.\n"
        "2) Incorporate color, lighting, and stylistic cues from the reference image.\n"
        f"3) Generate a high-quality photorealistic image for VARIATION {index + 1}.\n"
        f"4) {VARIATION_FOCUS[index % len(VARIATION_FOCUS)]}\n"
        "5) Return the image in high resolution.\n\n"
        "Generate the image now."
    )


class GeminiImageProvider:
    """Generates one image per reference image, each with its own focus."""

    def __init__(
        self,
        api_key: str,
        image_model: str = "gemini-2.5-flash-image-preview",
        temperature: float = 0.8,
    ) -> None:
        if not api_key:
            raise ValueError(
                "GEMINI_API_KEY is required for image generation. "
                "Get one at https://aistudio.google.com/apikey"
            )
        self._image_model = image_model
        self._temperature = temperature

        from google import genai

        self._client = genai.Client(api_key=api_key)
        logger.info("GeminiImageProvider initialised (model=%s)", self._image_model)

    # -- GenerationProviderPort ------------------------------------------------

    async def submit(self, request: GenerationRequest) -> ProviderResponse:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._generate_sync, request)

    async def poll(self, handle: QueueHandle) -> PollStatus:
        raise GenerationError("Gemini image generation does not return queue handles")

    # -- Internal --------------------------------------------------------------

    def _generate_sync(self, request: GenerationRequest) -> ProviderResponse:
        from google.genai import types

        if len(request.images) < 2:
            raise ValueError("Image generation needs a sketch and at least one reference image")
        description = request.option("description", {})
        missing = missing_description_fields(description)
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        sketch, references = request.images[0], request.images[1:]
        base_prompt = build_generation_prompt(description)
        started = time.perf_counter()
        generated: list[dict[str, Any]] = []

        for i, reference in enumerate(references):
            parts = [
                build_variation_prompt(base_prompt, i),
                types.Part.from_bytes(data=sketch.data, mime_type=sketch.mime_type),
                types.Part.from_bytes(data=reference.data, mime_type=reference.mime_type),
            ]
            try:
                response = self._client.models.generate_content(
                    model=self._image_model,
                    contents=parts,
                    config=types.GenerateContentConfig(
                        temperature=self._temperature,
                        max_output_tokens=4096,
                    ),
                )
            except Exception as exc:
                logger.error("Gemini error on variation %d: %s", i + 1, exc)
                continue

            image = extract_inline_image(response)
            if image is None:
                logger.warning("Variation %d returned no image", i + 1)
                continue
            data, mime_type = image
            generated.append(
                {
                    "id": f"nanobanana_gen_{i + 1}_{int(time.time())}",
                    "base64_data": base64.b64encode(data).decode("ascii"),
                    "mime_type": mime_type,
                    "filename": f"nano_banana_image_{i + 1}.png",
                }
            )

        if not generated:
            raise GenerationError(
                "Gemini did not generate any images. This may be due to content policy "
                "restrictions or model limitations. Please try adjusting your prompt or images."
            )

        elapsed = time.perf_counter() - started
        logger.info("Generated %d images in %.1fs", len(generated), elapsed)
        return Immediate(result={"images": generated, "processing_time": round(elapsed, 2)})
