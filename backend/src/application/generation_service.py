"""
Generation use cases: validate, rate-limit, persist a pending job and hand it
to the task queue. Clients poll the job record or listen on the WebSocket.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from backend.src.application.batch_orchestrator import BatchOrchestrator, video_requests_for_images
from backend.src.application.job_orchestrator import JobOrchestrator
from backend.src.core.entities.batch_run import BatchRun
from backend.src.core.entities.generation_job import GenerationJob, JobKind, JobStatus
from backend.src.core.exceptions import InputValidationError, NotFoundError
from backend.src.core.services.rate_limiter import MinIntervalGate
from backend.src.core.value_objects.generation_request import (
    GenerationRequest,
    ImageInput,
    missing_description_fields,
)

logger = logging.getLogger(__name__)

RUN_JOB_TASK = "generation.run_job"
RUN_BATCH_TASK = "generation.run_batch"

MAX_REFERENCE_IMAGES = 5
MIN_STITCH_VIDEOS = 2

OnFinished = Callable[[GenerationJob], Awaitable[Any]]


class GenerationService:
    """Submits image, video, upscale and stitch jobs and video batches."""

    def __init__(
        self,
        orchestrator: JobOrchestrator,
        job_repository,   # JobRepositoryPort
        task_queue,       # TaskQueuePort
        notifier,         # NotificationPort
        rate_gate: MinIntervalGate,
    ):
        self._orchestrator = orchestrator
        self._batch_orchestrator = BatchOrchestrator(orchestrator)
        self._jobs = job_repository
        self._queue = task_queue
        self._notifier = notifier
        self._rate_gate = rate_gate
        # Latest batch per user; a new submit replaces the previous one.
        self._batches: dict[str, BatchRun] = {}

    # -- Submissions -----------------------------------------------------------

    async def submit_video(
        self,
        user_id: str,
        prompt: str,
        image: Optional[ImageInput] = None,
        aspect_ratio: str = "16:9",
        duration: str = "8s",
        project_id: Optional[str] = None,
        scene_id: Optional[str] = None,
        on_finished: Optional[OnFinished] = None,
    ) -> GenerationJob:
        if not prompt or not prompt.strip():
            raise InputValidationError("A prompt is required for video generation")
        request = GenerationRequest(
            kind=JobKind.VIDEO,
            prompt=prompt.strip(),
            images=(image,) if image is not None else (),
            options={"aspect_ratio": aspect_ratio, "duration": duration},
        )
        return await self._submit(
            user_id, request, project_id=project_id, scene_id=scene_id, on_finished=on_finished
        )

    async def submit_upscale(self, user_id: str, image: ImageInput, scale: int = 2) -> GenerationJob:
        if not image.data:
            raise InputValidationError("An image is required for upscaling")
        if scale < 1 or scale > 4:
            raise InputValidationError("scale must be between 1 and 4")
        request = GenerationRequest(kind=JobKind.UPSCALE, images=(image,), options={"scale": scale})
        return await self._submit(user_id, request)

    async def submit_stitch(self, user_id: str, video_urls: Sequence[str]) -> GenerationJob:
        urls = tuple(u.strip() for u in video_urls if u and u.strip())
        if len(urls) < MIN_STITCH_VIDEOS:
            raise InputValidationError(f"At least {MIN_STITCH_VIDEOS} videos are required to stitch")
        request = GenerationRequest(kind=JobKind.STITCH, video_urls=urls)
        return await self._submit(user_id, request)

    async def submit_images(
        self,
        user_id: str,
        sketch: ImageInput,
        references: Sequence[ImageInput],
        description: dict[str, Any],
    ) -> GenerationJob:
        if not sketch.data:
            raise InputValidationError("A sketch image is required")
        if not references:
            raise InputValidationError("At least one reference image is required")
        if len(references) > MAX_REFERENCE_IMAGES:
            raise InputValidationError(f"At most {MAX_REFERENCE_IMAGES} reference images are allowed")
        missing = missing_description_fields(description)
        if missing:
            raise InputValidationError(f"Missing required fields: {', '.join(missing)}")
        request = GenerationRequest(
            kind=JobKind.IMAGE,
            images=(sketch, *references),
            options={"description": dict(description)},
        )
        return await self._submit(user_id, request)

    async def submit_video_batch(
        self,
        user_id: str,
        images: Sequence[tuple[str, ImageInput]],
        scene_description: str,
    ) -> BatchRun:
        if not images:
            raise InputValidationError("At least one image is required for a batch")
        if not scene_description or not scene_description.strip():
            raise InputValidationError("A scene description is required")
        self._ensure_provider(JobKind.VIDEO)
        self._rate_gate.acquire(f"{user_id}:batch")

        keyed = video_requests_for_images(images, scene_description.strip())
        requests = [request for _, request in keyed]
        batch = self._batch_orchestrator.prepare(
            requests, user_id=user_id, job_ids=[job_id for job_id, _ in keyed]
        )
        for job in batch.items:
            await self._jobs.save(job)
        replaced = self._batches.get(user_id)
        if replaced is not None:
            logger.info("Batch %s for user %s replaced by %s", replaced.id, user_id, batch.id)
        self._batches[user_id] = batch

        self._queue.enqueue(RUN_BATCH_TASK, {"batch": batch, "requests": requests})
        logger.info("Batch %s queued for user %s with %d image(s)", batch.id, user_id, batch.total)
        return batch

    # -- Queries ---------------------------------------------------------------

    async def get_job(self, user_id: str, job_id: str) -> GenerationJob:
        job = await self._jobs.get_by_id(job_id, user_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    async def list_jobs(self, user_id: str) -> list[GenerationJob]:
        return await self._jobs.list_by_user(user_id)

    def get_batch(self, user_id: str, batch_id: str) -> BatchRun:
        batch = self._batches.get(user_id)
        if batch is None or batch.id != batch_id:
            raise NotFoundError("Batch", batch_id)
        return batch

    # -- Task handlers (registered on the task queue) --------------------------

    async def run_job(
        self,
        job: GenerationJob,
        request: GenerationRequest,
        on_finished: Optional[OnFinished] = None,
    ) -> GenerationJob:
        await self._orchestrator.run(job, request, on_update=self._publish)
        if on_finished is not None:
            await on_finished(job)
        return job

    async def run_batch(self, batch: BatchRun, requests: Sequence[GenerationRequest]) -> BatchRun:
        return await self._batch_orchestrator.execute(batch, requests, on_update=self._publish)

    # -- Internal --------------------------------------------------------------

    def _ensure_provider(self, kind: JobKind) -> None:
        if not self._orchestrator.supports(kind):
            raise InputValidationError(f"No provider is configured for {kind.value} generation")

    async def _submit(
        self,
        user_id: str,
        request: GenerationRequest,
        project_id: Optional[str] = None,
        scene_id: Optional[str] = None,
        on_finished: Optional[OnFinished] = None,
    ) -> GenerationJob:
        self._ensure_provider(request.kind)
        self._rate_gate.acquire(f"{user_id}:generation")

        job = GenerationJob(kind=request.kind, user_id=user_id, project_id=project_id, scene_id=scene_id)
        job = await self._jobs.save(job)
        self._queue.enqueue(
            RUN_JOB_TASK, {"job": job, "request": request, "on_finished": on_finished}
        )
        logger.info("Queued %s job %s for user %s", job.kind.value, job.id, user_id)
        return job

    async def _publish(self, job: GenerationJob) -> None:
        await self._jobs.save(job)
        channel = job.user_id
        if job.status == JobStatus.COMPLETED:
            await self._notifier.send_completion(channel, job.id, job.to_dict())
        elif job.status == JobStatus.FAILED:
            await self._notifier.send_error(channel, job.id, job.error or "Generation failed")
        else:
            await self._notifier.send_progress(channel, job.id, job.progress, job.status.value)
