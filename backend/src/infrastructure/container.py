"""
Dependency container.
Wires together ports and adapters based on configuration.
"""
from __future__ import annotations

import logging
from typing import Optional

from backend.src.core.entities.generation_job import JobKind
from backend.src.infrastructure.config import Settings

logger = logging.getLogger(__name__)


class ApplicationContainer:
    """Simplified container that builds concrete instances from settings.

    Usage::

        container = ApplicationContainer(settings)
        service = container.generation_service()

    Adapters and services are built on first use and cached; services hold
    in-memory state (frame sessions, batch runs) so they must be shared.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._cache: dict[str, object] = {}

    def _get_or_create(self, key: str, factory):
        if key not in self._cache:
            self._cache[key] = factory(self.settings)
        return self._cache[key]

    def override(self, key: str, instance: object) -> None:
        """Replace a cached component, e.g. with a test double."""
        self._cache[key] = instance

    # ── Lazy factory helpers ──────────────────────────────────────

    @staticmethod
    def _build_user_auth(settings: Settings):
        from backend.src.adapters.outbound.auth.noop_auth import NoopAuthAdapter
        return NoopAuthAdapter()

    @staticmethod
    def _build_frame_extraction(settings: Settings):
        from backend.src.adapters.outbound.media.opencv_frames import OpenCVFrameExtractor
        return OpenCVFrameExtractor(
            quality=settings.frame_extraction.quality,
            max_frames=settings.frame_extraction.max_frames,
        )

    @staticmethod
    def _build_fal_provider(settings: Settings):
        if not settings.fal.key:
            logger.warning("FAL_KEY not set; video, upscale and stitch generation are disabled")
            return None
        from backend.src.adapters.outbound.ai.fal_queue import FalQueueProvider
        return FalQueueProvider(
            api_key=settings.fal.key,
            base_url=settings.fal.base_url,
            models={
                JobKind.VIDEO: settings.fal.video_model,
                JobKind.UPSCALE: settings.fal.upscale_model,
                JobKind.STITCH: settings.fal.stitch_model,
            },
            timeout=settings.fal.request_timeout,
        )

    @staticmethod
    def _build_image_provider(settings: Settings):
        if not settings.gemini.api_key:
            logger.warning("GEMINI_API_KEY not set; image generation is disabled")
            return None
        from backend.src.adapters.outbound.ai.gemini_images import GeminiImageProvider
        return GeminiImageProvider(
            api_key=settings.gemini.api_key,
            image_model=settings.gemini.image_model,
            temperature=settings.gemini.temperature,
        )

    @staticmethod
    def _build_frame_vision(settings: Settings):
        if not settings.gemini.api_key:
            logger.warning("GEMINI_API_KEY not set; frame editing and analysis are disabled")
            return None
        from backend.src.adapters.outbound.ai.gemini_frames import GeminiFrameVision
        return GeminiFrameVision(
            api_key=settings.gemini.api_key,
            edit_model=settings.gemini.image_model,
            vision_model=settings.gemini.vision_model,
        )

    @staticmethod
    def _build_ad_writer(settings: Settings):
        if settings.ads.backend == "gemini":
            from backend.src.adapters.outbound.ai.gemini_ad_writer import GeminiAdWriter
            return GeminiAdWriter(api_key=settings.gemini.api_key, text_model=settings.gemini.text_model)
        from backend.src.core.services.ad_script_writer import TemplateAdWriter
        return TemplateAdWriter()

    @staticmethod
    def _build_database_engine(settings: Settings):
        from backend.src.infrastructure.database import get_async_engine
        return get_async_engine(
            settings.database.url,
            echo=settings.database.echo,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
        )

    def _session_factory(self):
        from backend.src.infrastructure.database import get_async_session_factory
        return self._get_or_create(
            "session_factory", lambda _s: get_async_session_factory(self.database_engine())
        )

    def _build_project_repository(self, settings: Settings):
        if settings.persistence_backend == "postgres":
            from backend.src.adapters.outbound.persistence.postgres_project_repo import PostgresProjectRepository
            return PostgresProjectRepository(self._session_factory())
        from backend.src.adapters.outbound.persistence.in_memory_project_repo import InMemoryProjectRepository
        return InMemoryProjectRepository()

    def _build_job_repository(self, settings: Settings):
        if settings.persistence_backend == "postgres":
            from backend.src.adapters.outbound.persistence.postgres_job_repo import PostgresJobRepository
            return PostgresJobRepository(self._session_factory())
        from backend.src.adapters.outbound.persistence.in_memory_job_repo import InMemoryJobRepository
        return InMemoryJobRepository()

    @staticmethod
    def _build_file_storage(settings: Settings):
        from backend.src.adapters.outbound.persistence.local_file_storage import LocalFileStorage
        return LocalFileStorage(base_dir=settings.storage.upload_dir)

    @staticmethod
    def _build_task_queue(settings: Settings):
        from backend.src.adapters.outbound.queue.in_process_queue import InProcessTaskQueue
        return InProcessTaskQueue()

    @staticmethod
    def _build_notification(settings: Settings):
        from backend.src.adapters.outbound.external.websocket_notifier import WebSocketNotifier
        return WebSocketNotifier()

    @staticmethod
    def _build_rate_gate(settings: Settings):
        from backend.src.core.services.rate_limiter import MinIntervalGate
        return MinIntervalGate(settings.rate_limit.min_interval_seconds)

    # ── Port accessors ─────────────────────────────────────────────

    def user_auth(self):
        return self._get_or_create("user_auth", self._build_user_auth)

    def frame_extraction(self):
        return self._get_or_create("frame_extraction", self._build_frame_extraction)

    def fal_provider(self):
        return self._get_or_create("fal_provider", self._build_fal_provider)

    def image_provider(self):
        return self._get_or_create("image_provider", self._build_image_provider)

    def frame_vision(self):
        return self._get_or_create("frame_vision", self._build_frame_vision)

    def ad_writer(self):
        return self._get_or_create("ad_writer", self._build_ad_writer)

    def database_engine(self):
        return self._get_or_create("database_engine", self._build_database_engine)

    def project_repository(self):
        return self._get_or_create("project_repository", self._build_project_repository)

    def job_repository(self):
        return self._get_or_create("job_repository", self._build_job_repository)

    def file_storage(self):
        return self._get_or_create("file_storage", self._build_file_storage)

    def task_queue(self):
        return self._get_or_create("task_queue", self._build_task_queue)

    def notification(self):
        return self._get_or_create("notification", self._build_notification)

    def rate_gate(self):
        return self._get_or_create("rate_gate", self._build_rate_gate)

    # ── Application services ───────────────────────────────────────

    def providers_by_kind(self) -> dict:
        providers = {}
        fal = self.fal_provider()
        if fal is not None:
            providers.update({JobKind.VIDEO: fal, JobKind.UPSCALE: fal, JobKind.STITCH: fal})
        images = self.image_provider()
        if images is not None:
            providers[JobKind.IMAGE] = images
        return providers

    def job_orchestrator(self):
        def _build(settings: Settings):
            from backend.src.application.job_orchestrator import JobOrchestrator
            from backend.src.core.value_objects.poll_policy import PollPolicy
            interval = settings.polling.interval_seconds
            return JobOrchestrator(
                providers_by_kind=self.providers_by_kind(),
                policies_by_kind={
                    JobKind.VIDEO: PollPolicy(interval, settings.polling.video_max_attempts),
                    JobKind.UPSCALE: PollPolicy(interval, settings.polling.upscale_max_attempts),
                    JobKind.STITCH: PollPolicy(interval, settings.polling.stitch_max_attempts),
                },
            )
        return self._get_or_create("job_orchestrator", _build)

    def generation_service(self):
        def _build(settings: Settings):
            from backend.src.application.generation_service import (
                RUN_BATCH_TASK,
                RUN_JOB_TASK,
                GenerationService,
            )
            queue = self.task_queue()
            service = GenerationService(
                orchestrator=self.job_orchestrator(),
                job_repository=self.job_repository(),
                task_queue=queue,
                notifier=self.notification(),
                rate_gate=self.rate_gate(),
            )
            queue.register(RUN_JOB_TASK, service.run_job)
            queue.register(RUN_BATCH_TASK, service.run_batch)
            return service
        return self._get_or_create("generation_service", _build)

    def project_service(self):
        def _build(settings: Settings):
            from backend.src.application.project_service import ProjectService
            return ProjectService(repository=self.project_repository())
        return self._get_or_create("project_service", _build)

    def scene_service(self):
        def _build(settings: Settings):
            from backend.src.application.scene_service import SceneService
            return SceneService(
                repository=self.project_repository(),
                project_service=self.project_service(),
                generation_service=self.generation_service(),
            )
        return self._get_or_create("scene_service", _build)

    def frame_session_service(self):
        def _build(settings: Settings):
            from backend.src.application.frame_session_service import FrameSessionService
            return FrameSessionService(
                frame_extraction=self.frame_extraction(),
                frame_vision=self.frame_vision(),
                rate_gate=self.rate_gate(),
                analysis_stride=settings.frame_extraction.analysis_stride,
            )
        return self._get_or_create("frame_session_service", _build)

    def ad_package_service(self):
        def _build(settings: Settings):
            from backend.src.application.ad_package_service import AdPackageService
            return AdPackageService(
                ad_writer=self.ad_writer(),
                rate_gate=self.rate_gate(),
                global_context=settings.ads.global_context,
                max_variants=settings.ads.max_variants,
            )
        return self._get_or_create("ad_package_service", _build)

    # ── Lifecycle ──────────────────────────────────────────────────

    async def startup(self) -> None:
        if self.settings.persistence_backend == "postgres" and self.settings.database.create_tables:
            from backend.src.infrastructure.database import create_tables
            await create_tables(self.database_engine())
        # Build eagerly so task handlers are registered before the first request.
        self.generation_service()

    async def shutdown(self) -> None:
        queue = self._cache.get("task_queue")
        if queue is not None:
            await queue.shutdown()
        engine = self._cache.get("database_engine")
        if engine is not None:
            await engine.dispose()
            logger.info("Database engine disposed")
