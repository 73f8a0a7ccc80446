"""Unit tests for the Gemini adapters with a mocked genai client."""
from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from backend.src.core.entities.frame import Frame, FrameSuggestion
from backend.src.core.entities.generation_job import JobKind
from backend.src.core.exceptions import GenerationError
from backend.src.core.services.ad_script_writer import TemplateAdWriter
from backend.src.core.value_objects.generation_request import GenerationRequest, ImageInput
from backend.src.core.value_objects.provider_response import Immediate

DESCRIPTION = {
    "setting": "a beach",
    "subjects": "a dog",
    "composition": "wide",
    "environment": "sunny",
    "lighting": "golden hour",
    "focal_points": "the dog",
    "mood": "playful",
}


def _image_response(data=b"\x89PNG out", mime_type="image/png"):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def _text_response(text):
    return SimpleNamespace(text=text, candidates=[])


class TestGeminiFrameVision:
    def _vision(self, client):
        with patch("google.genai.Client", return_value=client):
            from backend.src.adapters.outbound.ai.gemini_frames import GeminiFrameVision

            return GeminiFrameVision(api_key="key")

    def test_requires_key(self):
        from backend.src.adapters.outbound.ai.gemini_frames import GeminiFrameVision

        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiFrameVision(api_key="")

    @pytest.mark.asyncio
    async def test_edit_keeps_frame_identity(self):
        client = MagicMock()
        client.models.generate_content.return_value = _image_response()
        vision = self._vision(client)
        frame = Frame(id=4, image_data=b"jpeg", timestamp_seconds=4.0)

        edited = await vision.edit_frame(frame, "make it snow")

        assert edited.id == 4
        assert edited.timestamp_seconds == 4.0
        assert edited.image_data == b"\x89PNG out"
        assert edited.mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_edit_without_image_raises(self):
        client = MagicMock()
        client.models.generate_content.return_value = _text_response("sorry")
        vision = self._vision(client)

        with pytest.raises(GenerationError, match="No image"):
            await vision.edit_frame(Frame(id=0, image_data=b"x", timestamp_seconds=0.0), "p")

    @pytest.mark.asyncio
    async def test_edit_transport_error_wrapped(self):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("503 unavailable")
        vision = self._vision(client)

        with pytest.raises(GenerationError, match="503"):
            await vision.edit_frame(Frame(id=0, image_data=b"x", timestamp_seconds=0.0), "p")

    @pytest.mark.asyncio
    async def test_analyze_parses_suggestions(self, make_frames):
        client = MagicMock()
        client.models.generate_content.return_value = _text_response(
            json.dumps([{"frameIndex": 1, "suggestion": "Add a title card"}])
        )
        vision = self._vision(client)

        suggestions = await vision.analyze_frames(make_frames(3))

        assert suggestions == [FrameSuggestion(frame_index=1, suggestion="Add a title card")]

    @pytest.mark.asyncio
    async def test_analyze_falls_back_on_unparseable_reply(self, make_frames):
        client = MagicMock()
        client.models.generate_content.return_value = _text_response("not json at all")
        vision = self._vision(client)

        suggestions = await vision.analyze_frames(make_frames(2))

        assert [s.frame_index for s in suggestions] == [0, 1]


class TestParseSuggestions:
    def test_wrapped_object_and_range_filter(self):
        from backend.src.adapters.outbound.ai.gemini_frames import parse_suggestions

        raw = json.dumps(
            {"suggestions": [
                {"frameIndex": 0, "suggestion": "ok"},
                {"frameIndex": 9, "suggestion": "out of range"},
            ]}
        )
        assert parse_suggestions(raw, 2) == [FrameSuggestion(frame_index=0, suggestion="ok")]


class TestGeminiImageProvider:
    def _provider(self, client):
        with patch("google.genai.Client", return_value=client):
            from backend.src.adapters.outbound.ai.gemini_images import GeminiImageProvider

            return GeminiImageProvider(api_key="key")

    def _request(self, references: int) -> GenerationRequest:
        sketch = ImageInput(data=b"sketch", mime_type="image/png")
        refs = tuple(ImageInput(data=f"ref{i}".encode(), mime_type="image/jpeg") for i in range(references))
        return GenerationRequest(
            kind=JobKind.IMAGE, images=(sketch, *refs), options={"description": DESCRIPTION}
        )

    @pytest.mark.asyncio
    async def test_one_image_per_reference(self):
        client = MagicMock()
        client.models.generate_content.return_value = _image_response()
        provider = self._provider(client)

        response = await provider.submit(self._request(references=3))

        assert isinstance(response, Immediate)
        images = response.result["images"]
        assert len(images) == 3
        assert images[0]["filename"] == "nano_banana_image_1.png"
        assert client.models.generate_content.call_count == 3

    @pytest.mark.asyncio
    async def test_partial_failures_are_skipped(self):
        client = MagicMock()
        client.models.generate_content.side_effect = [
            RuntimeError("quota"),
            _image_response(),
        ]
        provider = self._provider(client)

        response = await provider.submit(self._request(references=2))

        assert len(response.result["images"]) == 1

    @pytest.mark.asyncio
    async def test_no_images_raises(self):
        client = MagicMock()
        client.models.generate_content.return_value = _text_response("blocked")
        provider = self._provider(client)

        with pytest.raises(GenerationError, match="did not generate any images"):
            await provider.submit(self._request(references=1))

    def test_variation_prompt_cycles_focus(self):
        from backend.src.adapters.outbound.ai.gemini_images import (
            VARIATION_FOCUS,
            build_variation_prompt,
        )

        assert VARIATION_FOCUS[0] in build_variation_prompt("base", 5)
        assert "VARIATION 2" in build_variation_prompt("base", 1)


class TestGeminiAdWriter:
    def _writer(self, client):
        with patch("google.genai.Client", return_value=client):
            from backend.src.adapters.outbound.ai.gemini_ad_writer import GeminiAdWriter

            return GeminiAdWriter(api_key="key")

    @pytest.mark.asyncio
    async def test_valid_reply_is_parsed_with_original_brief(self, sample_brief):
        reference = TemplateAdWriter().compose(sample_brief, 2)
        reply = json.loads(reference.model_dump_json(by_alias=True))
        reply["brief"] = {"brand": "hallucinated"}
        client = MagicMock()
        client.models.generate_content.return_value = _text_response(json.dumps(reply))

        package = await self._writer(client).write(sample_brief, 2, context="RULES")

        assert package.brief == sample_brief
        assert len(package.variants) == 2
        prompt = client.models.generate_content.call_args.kwargs["contents"]
        assert prompt.startswith("RULES")

    @pytest.mark.asyncio
    async def test_invalid_reply_raises(self, sample_brief):
        client = MagicMock()
        client.models.generate_content.return_value = _text_response('{"variants": "nope"}')

        with pytest.raises(GenerationError, match="invalid ad package"):
            await self._writer(client).write(sample_brief, 1)

    def test_prompt_names_platform_limits(self, sample_brief):
        from backend.src.adapters.outbound.ai.gemini_ad_writer import GeminiAdWriter

        prompt = GeminiAdWriter.build_prompt(sample_brief, 3, "ctx")
        assert "exactly 3 variants" in prompt
        assert "150 characters" in prompt
