"""Unit tests for GenerationService."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.src.adapters.outbound.persistence.in_memory_job_repo import InMemoryJobRepository
from backend.src.application.generation_service import (
    RUN_BATCH_TASK,
    RUN_JOB_TASK,
    GenerationService,
)
from backend.src.application.job_orchestrator import JobOrchestrator
from backend.src.core.entities.generation_job import JobKind, JobStatus
from backend.src.core.exceptions import InputValidationError, NotFoundError, RateLimitError
from backend.src.core.services.rate_limiter import MinIntervalGate
from backend.src.core.value_objects.generation_request import ImageInput
from backend.src.core.value_objects.provider_response import Immediate

FULL_DESCRIPTION = {
    "setting": "a beach",
    "subjects": "a dog",
    "composition": "wide shot",
    "environment": "sunny",
    "lighting": "golden hour",
    "focal_points": "the dog",
    "mood": "playful",
}


@pytest.fixture
def provider():
    provider = AsyncMock()
    provider.submit.return_value = Immediate({"video": {"url": "https://cdn/v.mp4"}})
    return provider


@pytest.fixture
def queue():
    queue = MagicMock()
    queue.enqueue.return_value = "task-1"
    return queue


@pytest.fixture
def service(provider, queue, mock_notifier, fake_clock, no_sleep):
    kinds = {kind: provider for kind in JobKind}
    return GenerationService(
        orchestrator=JobOrchestrator(kinds, sleep=no_sleep),
        job_repository=InMemoryJobRepository(),
        task_queue=queue,
        notifier=mock_notifier,
        rate_gate=MinIntervalGate(5.0, clock=fake_clock),
    )


class TestSubmissions:
    @pytest.mark.asyncio
    async def test_submit_video_persists_pending_job_and_enqueues(self, service, queue, provider):
        job = await service.submit_video("u1", "  a banana surfing  ", aspect_ratio="9:16")

        assert job.status == JobStatus.PENDING
        assert job.kind == JobKind.VIDEO
        stored = await service.get_job("u1", job.id)
        assert stored.id == job.id

        task_name, args = queue.enqueue.call_args.args
        assert task_name == RUN_JOB_TASK
        assert args["request"].prompt == "a banana surfing"
        assert args["request"].option("aspect_ratio") == "9:16"
        provider.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_prompt_rejected_before_any_call(self, service, queue):
        with pytest.raises(InputValidationError):
            await service.submit_video("u1", "   ")
        queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_validation_failure_does_not_consume_rate_window(self, service, png_image):
        with pytest.raises(InputValidationError):
            await service.submit_upscale("u1", png_image, scale=9)
        await service.submit_upscale("u1", png_image, scale=4)

    @pytest.mark.asyncio
    async def test_second_submission_inside_interval_is_rate_limited(self, service, fake_clock):
        await service.submit_video("u1", "first")
        fake_clock.advance(1.0)
        with pytest.raises(RateLimitError) as exc_info:
            await service.submit_video("u1", "second")
        assert exc_info.value.remaining_seconds == pytest.approx(4.0)

        await service.submit_video("u2", "other user is independent")
        fake_clock.advance(4.0)
        await service.submit_video("u1", "third")

    @pytest.mark.asyncio
    async def test_upscale_requires_image_data(self, service):
        with pytest.raises(InputValidationError):
            await service.submit_upscale("u1", ImageInput(data=b""))

    @pytest.mark.asyncio
    async def test_stitch_requires_two_urls(self, service):
        with pytest.raises(InputValidationError):
            await service.submit_stitch("u1", ["https://cdn/a.mp4", "  "])
        job = await service.submit_stitch("u1", ["https://cdn/a.mp4", "https://cdn/b.mp4"])
        assert job.kind == JobKind.STITCH

    @pytest.mark.asyncio
    async def test_images_require_references_and_description(self, service, png_image):
        with pytest.raises(InputValidationError, match="reference"):
            await service.submit_images("u1", png_image, [], FULL_DESCRIPTION)
        with pytest.raises(InputValidationError, match="At most 5"):
            await service.submit_images("u1", png_image, [png_image] * 6, FULL_DESCRIPTION)
        with pytest.raises(InputValidationError, match="mood"):
            partial = {k: v for k, v in FULL_DESCRIPTION.items() if k != "mood"}
            await service.submit_images("u1", png_image, [png_image], partial)

        job = await service.submit_images("u1", png_image, [png_image, png_image], FULL_DESCRIPTION)
        assert job.kind == JobKind.IMAGE

    @pytest.mark.asyncio
    async def test_unconfigured_kind_rejected(self, queue, mock_notifier, open_gate):
        service = GenerationService(
            JobOrchestrator({}), InMemoryJobRepository(), queue, mock_notifier, open_gate
        )
        with pytest.raises(InputValidationError, match="video"):
            await service.submit_video("u1", "prompt")
        queue.enqueue.assert_not_called()


class TestBatches:
    @pytest.mark.asyncio
    async def test_submit_batch_saves_items_and_enqueues(self, service, queue, png_image):
        batch = await service.submit_video_batch(
            "u1", [("1", png_image), ("2", png_image)], "A foggy harbour"
        )

        assert batch.total == 2
        assert [j.id for j in batch.items] == ["video-1", "video-2"]
        task_name, args = queue.enqueue.call_args.args
        assert task_name == RUN_BATCH_TASK
        assert args["batch"] is batch
        assert service.get_batch("u1", batch.id) is batch

    @pytest.mark.asyncio
    async def test_batch_requires_description(self, service, png_image):
        with pytest.raises(InputValidationError):
            await service.submit_video_batch("u1", [("1", png_image)], " ")

    @pytest.mark.asyncio
    async def test_batch_is_private_to_its_user(self, service, png_image):
        batch = await service.submit_video_batch("u1", [("1", png_image)], "scene")
        with pytest.raises(NotFoundError):
            service.get_batch("u2", batch.id)

    @pytest.mark.asyncio
    async def test_next_batch_replaces_previous_one(self, service, png_image, fake_clock):
        first = await service.submit_video_batch("u1", [("1", png_image)], "scene one")
        fake_clock.advance(5)
        second = await service.submit_video_batch("u1", [("2", png_image)], "scene two")

        assert service.get_batch("u1", second.id) is second
        with pytest.raises(NotFoundError):
            service.get_batch("u1", first.id)
        assert service._batches == {"u1": second}

    @pytest.mark.asyncio
    async def test_batches_of_other_users_are_kept(self, service, png_image):
        mine = await service.submit_video_batch("u1", [("1", png_image)], "scene")
        theirs = await service.submit_video_batch("u2", [("1", png_image)], "scene")

        assert service.get_batch("u1", mine.id) is mine
        assert service.get_batch("u2", theirs.id) is theirs

    @pytest.mark.asyncio
    async def test_run_batch_settles_every_item(self, service, queue, png_image, mock_notifier):
        batch = await service.submit_video_batch(
            "u1", [("1", png_image), ("2", png_image)], "scene"
        )
        requests = queue.enqueue.call_args.args[1]["requests"]

        await service.run_batch(batch, requests)

        assert batch.completed == 2
        assert batch.is_settled
        assert mock_notifier.send_completion.await_count == 2


class TestQueriesAndHandlers:
    @pytest.mark.asyncio
    async def test_get_job_unknown_raises(self, service):
        with pytest.raises(NotFoundError):
            await service.get_job("u1", "missing")

    @pytest.mark.asyncio
    async def test_get_job_of_other_user_raises(self, service):
        job = await service.submit_video("u1", "prompt")
        with pytest.raises(NotFoundError):
            await service.get_job("u2", job.id)

    @pytest.mark.asyncio
    async def test_run_job_persists_and_notifies(self, service, queue, mock_notifier):
        finished = AsyncMock()
        job = await service.submit_video("u1", "prompt", on_finished=finished)
        args = queue.enqueue.call_args.args[1]

        await service.run_job(**args)

        stored = await service.get_job("u1", job.id)
        assert stored.status == JobStatus.COMPLETED
        assert stored.result == {"video": {"url": "https://cdn/v.mp4"}}
        mock_notifier.send_progress.assert_awaited()
        mock_notifier.send_completion.assert_awaited_once()
        assert mock_notifier.send_completion.await_args.args[:2] == ("u1", job.id)
        finished.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_job_failure_notifies_error(self, service, queue, provider, mock_notifier):
        provider.submit.side_effect = RuntimeError("FAL API error: 500")
        job = await service.submit_video("u1", "prompt")

        await service.run_job(**queue.enqueue.call_args.args[1])

        stored = await service.get_job("u1", job.id)
        assert stored.status == JobStatus.FAILED
        mock_notifier.send_error.assert_awaited_once_with("u1", job.id, "FAL API error: 500")

    @pytest.mark.asyncio
    async def test_list_jobs(self, service, fake_clock):
        await service.submit_video("u1", "one")
        fake_clock.advance(10)
        await service.submit_stitch("u1", ["a", "b"])
        jobs = await service.list_jobs("u1")
        assert {j.kind for j in jobs} == {JobKind.VIDEO, JobKind.STITCH}
        assert await service.list_jobs("u2") == []

