"""Frame entities produced by the frame extractor."""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from typing import Optional

from backend.src.core.exceptions import InputValidationError


@dataclass(frozen=True)
class Frame:
    """A still image sampled from a video.

    ``id`` is the ordinal index within one extraction run (dense, 0..N-1).
    Frames are never mutated; an edit produces a new Frame in the overlay.
    """

    id: int
    image_data: bytes = field(repr=False)
    timestamp_seconds: float
    mime_type: str = "image/jpeg"

    def data_url(self) -> str:
        encoded = base64.b64encode(self.image_data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def with_image(self, image_data: bytes, mime_type: str) -> Frame:
        return Frame(
            id=self.id,
            image_data=image_data,
            timestamp_seconds=self.timestamp_seconds,
            mime_type=mime_type,
        )


class EditedFrameOverlay:
    """Edited replacements keyed by frame index.

    Originals stay intact; only indices of the extraction run are accepted.
    """

    def __init__(self, frame_count: int) -> None:
        self._frame_count = frame_count
        self._edits: dict[int, Frame] = {}

    def __contains__(self, index: int) -> bool:
        return index in self._edits

    def __len__(self) -> int:
        return len(self._edits)

    @property
    def indices(self) -> list[int]:
        return sorted(self._edits)

    def _check(self, index: int) -> None:
        if not 0 <= index < self._frame_count:
            raise InputValidationError(
                f"Frame index {index} is outside 0..{self._frame_count - 1}"
            )

    def set(self, index: int, frame: Frame) -> None:
        self._check(index)
        if frame.id != index:
            raise InputValidationError(
                f"Edited frame id {frame.id} does not match index {index}"
            )
        self._edits[index] = frame

    def get(self, index: int) -> Optional[Frame]:
        self._check(index)
        return self._edits.get(index)

    def remove(self, index: int) -> bool:
        self._check(index)
        return self._edits.pop(index, None) is not None

    def effective(self, frames: list[Frame]) -> list[Frame]:
        """Return *frames* with edits substituted where present."""
        return [self._edits.get(f.id, f) for f in frames]


@dataclass(frozen=True)
class FrameSuggestion:
    frame_index: int
    suggestion: str


@dataclass
class FrameSession:
    """In-memory editing session over one extraction run."""

    user_id: str
    video_path: str
    frames: list[Frame]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    suggestions: list[FrameSuggestion] = field(default_factory=list)
    overlay: EditedFrameOverlay = field(init=False)

    def __post_init__(self) -> None:
        self.overlay = EditedFrameOverlay(len(self.frames))

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def frame(self, index: int, original: bool = False) -> Frame:
        if not 0 <= index < len(self.frames):
            raise InputValidationError(
                f"Frame index {index} is outside 0..{len(self.frames) - 1}"
            )
        if not original:
            edited = self.overlay.get(index)
            if edited is not None:
                return edited
        return self.frames[index]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "frame_count": self.frame_count,
            "frames": [
                {
                    "id": f.id,
                    "timestamp_seconds": f.timestamp_seconds,
                    "mime_type": f.mime_type,
                    "edited": f.id in self.overlay,
                }
                for f in self.frames
            ],
            "suggestions": [
                {"frame_index": s.frame_index, "suggestion": s.suggestion}
                for s in self.suggestions
            ],
        }
