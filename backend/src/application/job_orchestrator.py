"""
Async job orchestration: submit, then either take the immediate result or poll
the provider queue on a fixed interval until a terminal state or the attempt
budget runs out.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from backend.src.core.entities.generation_job import FailureKind, GenerationJob, JobKind
from backend.src.core.exceptions import JobTimeoutError
from backend.src.core.value_objects.generation_request import GenerationRequest
from backend.src.core.value_objects.poll_policy import PollPolicy
from backend.src.core.value_objects.provider_response import (
    Immediate,
    PollState,
    Queued,
    QueueHandle,
)

logger = logging.getLogger(__name__)

OnUpdate = Callable[[GenerationJob], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]

DEFAULT_POLICIES: dict[JobKind, PollPolicy] = {
    JobKind.VIDEO: PollPolicy(interval_seconds=5.0, max_attempts=60),
    JobKind.UPSCALE: PollPolicy(interval_seconds=5.0, max_attempts=30),
    JobKind.STITCH: PollPolicy(interval_seconds=5.0, max_attempts=60),
}


class JobOrchestrator:
    """Drives a single GenerationJob to a terminal state.

    Provider outcomes never escape :meth:`run`: remote failures, transport
    errors and poll exhaustion all end as a failed job. ``on_update`` is
    awaited after every transition so callers can persist and notify.
    """

    def __init__(
        self,
        providers_by_kind: Mapping[JobKind, Any],  # GenerationProviderPort
        policies_by_kind: Optional[Mapping[JobKind, PollPolicy]] = None,
        sleep: Sleep = asyncio.sleep,
        on_update: Optional[OnUpdate] = None,
    ):
        self._providers = dict(providers_by_kind)
        self._policies = dict(DEFAULT_POLICIES)
        self._policies.update(policies_by_kind or {})
        self._sleep = sleep
        self._on_update = on_update

    def policy_for(self, kind: JobKind) -> PollPolicy:
        return self._policies.get(kind, PollPolicy())

    def supports(self, kind: JobKind) -> bool:
        return kind in self._providers

    async def run(
        self,
        job: GenerationJob,
        request: GenerationRequest,
        on_update: Optional[OnUpdate] = None,
    ) -> GenerationJob:
        notify = on_update or self._on_update
        provider = self._providers.get(request.kind)
        if provider is None:
            job.fail(f"No provider configured for {request.kind.value} jobs", FailureKind.TRANSPORT)
            await self._emit(notify, job)
            return job

        job.start()
        await self._emit(notify, job)

        try:
            response = await provider.submit(request)
        except Exception as exc:
            logger.error("Submit failed for %s job %s: %s", job.kind.value, job.id, exc)
            job.fail(str(exc), FailureKind.TRANSPORT)
            await self._emit(notify, job)
            return job

        if isinstance(response, Immediate):
            logger.info("%s job %s completed immediately", job.kind.value, job.id)
            job.complete(response.result)
            await self._emit(notify, job)
            return job

        if isinstance(response, Queued):
            return await self._poll_until_done(job, provider, response.handle, notify)

        job.fail(f"Unrecognised provider response: {type(response).__name__}", FailureKind.TRANSPORT)
        await self._emit(notify, job)
        return job

    async def _poll_until_done(
        self,
        job: GenerationJob,
        provider: Any,
        handle: QueueHandle,
        notify: Optional[OnUpdate],
    ) -> GenerationJob:
        policy = self.policy_for(job.kind)
        logger.info(
            "%s job %s queued as %s (interval=%.1fs, max_attempts=%d)",
            job.kind.value, job.id, handle.request_id, policy.interval_seconds, policy.max_attempts,
        )

        for attempt in range(1, policy.max_attempts + 1):
            await self._sleep(policy.interval_seconds)
            try:
                status = await provider.poll(handle)
            except Exception as exc:
                logger.error("Poll %d failed for %s job %s: %s", attempt, job.kind.value, job.id, exc)
                job.fail(str(exc), FailureKind.TRANSPORT)
                await self._emit(notify, job)
                return job

            if status.state == PollState.COMPLETED:
                logger.info("%s job %s completed after %d poll(s)", job.kind.value, job.id, attempt)
                job.complete(status.result or {})
                await self._emit(notify, job)
                return job

            if status.state == PollState.FAILED:
                message = status.error or "Generation failed"
                logger.warning("%s job %s failed at provider: %s", job.kind.value, job.id, message)
                job.fail(message, FailureKind.PROVIDER)
                await self._emit(notify, job)
                return job

            job.report_progress(policy.estimate_progress(attempt))
            await self._emit(notify, job)

        timeout = JobTimeoutError(policy.max_attempts)
        logger.warning("%s job %s: %s", job.kind.value, job.id, timeout)
        job.fail(str(timeout), FailureKind.TIMEOUT)
        await self._emit(notify, job)
        return job

    @staticmethod
    async def _emit(notify: Optional[OnUpdate], job: GenerationJob) -> None:
        if notify is not None:
            await notify(job)
