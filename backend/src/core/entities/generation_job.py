"""GenerationJob - one request/response cycle against a remote provider."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from backend.src.core.exceptions import JobStateError
from backend.src.core.value_objects.poll_policy import PROGRESS_CEILING


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    UPSCALE = "upscale"
    STITCH = "stitch"


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureKind(str, Enum):
    PROVIDER = "provider"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"


_TERMINAL = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class GenerationJob:
    """Status of a generation request.

    Transitions: pending -> in_progress -> completed | failed. Progress is an
    estimate that never decreases and only reaches 100 on completion.
    """

    kind: JobKind
    user_id: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    failure: Optional[FailureKind] = None
    project_id: Optional[str] = None
    scene_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in _TERMINAL

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise JobStateError(f"Job {self.id} is already {self.status.value}")

    def start(self) -> None:
        self._ensure_open()
        self.status = JobStatus.IN_PROGRESS
        self.updated_at = _utcnow()

    def report_progress(self, progress: int) -> None:
        self._ensure_open()
        capped = min(progress, PROGRESS_CEILING)
        if capped > self.progress:
            self.progress = capped
            self.updated_at = _utcnow()

    def complete(self, result: dict[str, Any]) -> None:
        self._ensure_open()
        self.status = JobStatus.COMPLETED
        self.progress = 100
        self.result = result
        self.updated_at = _utcnow()

    def fail(self, error: str, failure: FailureKind = FailureKind.PROVIDER) -> None:
        self._ensure_open()
        self.status = JobStatus.FAILED
        self.error = error
        self.failure = failure
        self.updated_at = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "status": self.status.value,
            "progress": self.progress,
            "result": self.result,
            "error": self.error,
            "failure": self.failure.value if self.failure else None,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
