"""GenerationRequest value object - what a provider is asked to produce."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from backend.src.core.entities.generation_job import JobKind

# Scene description fields an image request must fill in.
DESCRIPTION_FIELDS = (
    "setting",
    "subjects",
    "composition",
    "environment",
    "lighting",
    "focal_points",
    "mood",
)


def missing_description_fields(description: dict[str, Any]) -> list[str]:
    return [name for name in DESCRIPTION_FIELDS if not description.get(name)]


@dataclass(frozen=True)
class ImageInput:
    data: bytes = field(repr=False)
    mime_type: str = "image/png"
    name: str = ""

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


@dataclass(frozen=True)
class GenerationRequest:
    """Kind plus parameters for one remote generation."""

    kind: JobKind
    prompt: str = ""
    images: tuple[ImageInput, ...] = ()
    video_urls: tuple[str, ...] = ()
    options: dict[str, Any] = field(default_factory=dict)

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)
