"""Custom exception hierarchy for Banana Studio."""
from __future__ import annotations

import math


class StudioError(Exception):
    """Base exception for all Banana Studio errors."""


class InputValidationError(StudioError):
    """Raised when caller input is rejected before any network call."""


class NotFoundError(StudioError):
    """Raised when a record does not exist or is not visible to the caller."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class ProjectNotFoundError(NotFoundError):
    """Raised when a project cannot be found for the requesting user."""

    def __init__(self, project_id: str) -> None:
        super().__init__("Project", project_id)
        self.project_id = project_id


class FrameExtractionError(StudioError):
    """Raised when a video source cannot be loaded for frame extraction."""


class GenerationError(StudioError):
    """Raised when a remote generation request fails or is rejected."""


class JobTimeoutError(GenerationError):
    """Raised when a queued job exhausts its poll budget."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Generation timed out after {attempts} polls")


class JobStateError(StudioError):
    """Raised on an illegal generation job transition."""


class RateLimitError(StudioError):
    """Raised when a request arrives inside the minimum submission interval."""

    def __init__(self, remaining_seconds: float) -> None:
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"Please wait {math.ceil(remaining_seconds)} seconds before submitting another request"
        )
