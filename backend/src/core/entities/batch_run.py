"""BatchRun - aggregate over generation jobs submitted together."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from backend.src.core.entities.generation_job import GenerationJob, JobStatus


@dataclass(frozen=True)
class BatchItemError:
    index: int
    message: str


@dataclass(frozen=True)
class BatchItemResult:
    index: int
    job_id: str
    result: dict[str, Any]


@dataclass
class BatchRun:
    """Counts plus per-item outcomes.

    ``items`` follows submission order; ``results`` follows arrival order.
    """

    total: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    items: list[GenerationJob] = field(default_factory=list)
    results: list[BatchItemResult] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def is_settled(self) -> bool:
        return self.completed + self.failed == self.total

    def record_success(self, index: int, job: GenerationJob) -> None:
        self.results.append(BatchItemResult(index=index, job_id=job.id, result=job.result or {}))

    def record_failure(self, index: int, error: str) -> None:
        self.errors.append(BatchItemError(index=index, message=f"Image {index + 1}: {error}"))

    def in_flight(self) -> int:
        return sum(1 for j in self.items if j.status in (JobStatus.PENDING, JobStatus.IN_PROGRESS))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
            "in_flight": self.in_flight(),
            "settled": self.is_settled,
            "items": [job.to_dict() for job in self.items],
            "results": [
                {"index": r.index, "job_id": r.job_id, "result": r.result}
                for r in self.results
            ],
            "errors": [{"index": e.index, "message": e.message} for e in self.errors],
        }
