"""Port for frame extraction from video files."""
from __future__ import annotations
from typing import TYPE_CHECKING, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.entities.frame import Frame
    from backend.src.core.value_objects.trim_window import TrimWindow


@runtime_checkable
class FrameExtractionPort(Protocol):
    async def extract_frames(self, video_path: str, frames_per_second: float, window: TrimWindow) -> list[Frame]: ...
    def get_video_info(self, video_path: str) -> dict: ...
