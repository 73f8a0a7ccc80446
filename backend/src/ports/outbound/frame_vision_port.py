"""Port for AI edits and suggestions over extracted frames."""
from __future__ import annotations
from typing import TYPE_CHECKING, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.entities.frame import Frame, FrameSuggestion


@runtime_checkable
class FrameVisionPort(Protocol):
    async def edit_frame(self, frame: Frame, prompt: str) -> Frame: ...
    async def analyze_frames(self, frames: list[Frame]) -> list[FrameSuggestion]: ...
