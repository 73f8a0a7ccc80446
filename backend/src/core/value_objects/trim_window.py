"""TrimWindow value object representing the sampled subrange of a video."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from backend.src.core.exceptions import InputValidationError

# Guards the `t < end` test against float error in start + i / fps.
_EPSILON = 1e-9


@dataclass(frozen=True)
class TrimWindow:
    """Half-open ``[start_seconds, end_seconds)`` window in seconds.

    ``end_seconds`` of ``None`` means "until the end of the source".
    """

    start_seconds: float = 0.0
    end_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if self.start_seconds < 0:
            object.__setattr__(self, "start_seconds", 0.0)
        if self.end_seconds is not None and self.end_seconds < self.start_seconds:
            raise InputValidationError(
                f"end_seconds ({self.end_seconds}) must not be before start_seconds ({self.start_seconds})"
            )

    @property
    def is_open_ended(self) -> bool:
        return self.end_seconds is None

    def clamp(self, duration: float) -> TrimWindow:
        """Return a closed window whose end does not exceed *duration*."""
        end = duration if self.end_seconds is None else min(self.end_seconds, duration)
        start = min(self.start_seconds, end)
        return TrimWindow(start_seconds=start, end_seconds=end)

    @property
    def duration(self) -> float:
        if self.end_seconds is None:
            raise InputValidationError("Open-ended window has no duration until clamped")
        return self.end_seconds - self.start_seconds

    def sample_times(self, frames_per_second: float) -> list[float]:
        """Timestamps from start towards end, one every ``1 / frames_per_second``.

        A zero-length window yields an empty list.
        """
        if frames_per_second <= 0:
            raise InputValidationError(
                f"frames_per_second must be positive, got {frames_per_second}"
            )
        if self.end_seconds is None:
            raise InputValidationError("Window must be clamped before sampling")

        interval = 1.0 / frames_per_second
        times: list[float] = []
        i = 0
        while True:
            t = self.start_seconds + i * interval
            if t >= self.end_seconds - _EPSILON:
                break
            times.append(round(t, 6))
            i += 1
        return times
