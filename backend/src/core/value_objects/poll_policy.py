"""PollPolicy value object - fixed-interval, bounded polling budget."""

from __future__ import annotations

from dataclasses import dataclass

# Progress stays below this until the provider confirms completion.
PROGRESS_CEILING = 90


@dataclass(frozen=True)
class PollPolicy:
    interval_seconds: float = 5.0
    max_attempts: int = 60

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def budget_seconds(self) -> float:
        return self.interval_seconds * self.max_attempts

    def estimate_progress(self, attempts: int) -> int:
        """Progress estimate after *attempts* polls, capped at 90."""
        return int(min(attempts / self.max_attempts * PROGRESS_CEILING, PROGRESS_CEILING))
