"""
Batch orchestration: launch every item at once and settle them all.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from backend.src.application.job_orchestrator import JobOrchestrator, OnUpdate
from backend.src.core.entities.batch_run import BatchRun
from backend.src.core.entities.generation_job import FailureKind, GenerationJob, JobKind, JobStatus
from backend.src.core.value_objects.generation_request import GenerationRequest, ImageInput

logger = logging.getLogger(__name__)

# Batches above this size are allowed but logged; there is no concurrency cap.
LARGE_BATCH_WARNING = 10


def video_requests_for_images(
    images: Sequence[tuple[str, ImageInput]],
    scene_description: str,
    aspect_ratio: str = "16:9",
    duration: str = "8s",
) -> list[tuple[str, GenerationRequest]]:
    """One video request per ``(image_id, image)``, keyed by job id ``video-{image_id}``."""
    requests = []
    for i, (image_id, image) in enumerate(images):
        request = GenerationRequest(
            kind=JobKind.VIDEO,
            prompt=f"{scene_description} - Dynamic video scene {i + 1}",
            images=(image,),
            options={"aspect_ratio": aspect_ratio, "duration": duration},
        )
        requests.append((f"video-{image_id}", request))
    return requests


class BatchOrchestrator:
    """Runs N independent jobs concurrently with all-settled semantics.

    One failing item never cancels or hides the others; every outcome is
    recorded on the :class:`BatchRun` so ``completed + failed == total``.
    """

    def __init__(self, orchestrator: JobOrchestrator):
        self._orchestrator = orchestrator

    def prepare(
        self,
        requests: Sequence[GenerationRequest],
        user_id: str = "",
        job_ids: Optional[Sequence[str]] = None,
    ) -> BatchRun:
        """Create the BatchRun and its pending items without starting anything."""
        if job_ids is not None and len(job_ids) != len(requests):
            raise ValueError("job_ids must match requests one to one")
        batch = BatchRun(total=len(requests))
        for i, request in enumerate(requests):
            job = GenerationJob(kind=request.kind, user_id=user_id)
            if job_ids is not None:
                job.id = job_ids[i]
            batch.items.append(job)
        return batch

    async def run(
        self,
        requests: Sequence[GenerationRequest],
        user_id: str = "",
        job_ids: Optional[Sequence[str]] = None,
        on_update: Optional[OnUpdate] = None,
    ) -> BatchRun:
        batch = self.prepare(requests, user_id=user_id, job_ids=job_ids)
        return await self.execute(batch, requests, on_update=on_update)

    async def execute(
        self,
        batch: BatchRun,
        requests: Sequence[GenerationRequest],
        on_update: Optional[OnUpdate] = None,
    ) -> BatchRun:
        if batch.total > LARGE_BATCH_WARNING:
            logger.warning(
                "Batch %s launches %d jobs at once; no concurrency cap is applied",
                batch.id, batch.total,
            )
        logger.info("Batch %s started with %d item(s)", batch.id, batch.total)

        outcomes = await asyncio.gather(
            *(
                self._run_item(batch, i, job, request, on_update)
                for i, (job, request) in enumerate(zip(batch.items, requests))
            ),
            return_exceptions=True,
        )

        for i, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Batch %s item %d raised: %s", batch.id, i, outcome)
                job = batch.items[i]
                if not job.is_terminal:
                    job.fail(str(outcome), FailureKind.TRANSPORT)
                batch.record_failure(i, str(outcome))

        logger.info(
            "Batch %s settled: %d completed, %d failed of %d",
            batch.id, batch.completed, batch.failed, batch.total,
        )
        return batch

    async def _run_item(
        self,
        batch: BatchRun,
        index: int,
        job: GenerationJob,
        request: GenerationRequest,
        on_update: Optional[OnUpdate],
    ) -> None:
        await self._orchestrator.run(job, request, on_update=on_update)
        if job.status == JobStatus.COMPLETED:
            batch.record_success(index, job)
        else:
            logger.warning("Batch %s item %d failed: %s", batch.id, index, job.error)
            batch.record_failure(index, job.error or "Generation failed")
