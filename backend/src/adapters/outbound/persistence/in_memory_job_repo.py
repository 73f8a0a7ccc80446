"""In-memory implementation of JobRepositoryPort."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Optional

from backend.src.core.entities.generation_job import GenerationJob

logger = logging.getLogger(__name__)


class InMemoryJobRepository:
    def __init__(self) -> None:
        self._store: dict[str, GenerationJob] = {}
        self._lock = asyncio.Lock()

    async def save(self, job: GenerationJob) -> GenerationJob:
        async with self._lock:
            self._store[job.id] = copy.deepcopy(job)
            logger.debug("Saved job %s status=%s progress=%d", job.id, job.status.value, job.progress)
            return copy.deepcopy(job)

    async def get_by_id(self, job_id: str, user_id: str) -> Optional[GenerationJob]:
        async with self._lock:
            job = self._store.get(job_id)
            if job is None or job.user_id != user_id:
                return None
            return copy.deepcopy(job)

    async def list_by_user(self, user_id: str) -> list[GenerationJob]:
        async with self._lock:
            owned = [j for j in self._store.values() if j.user_id == user_id]
            owned.sort(key=lambda j: j.created_at, reverse=True)
            return copy.deepcopy(owned)
