"""Port for persisted generation job records."""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.entities.generation_job import GenerationJob


@runtime_checkable
class JobRepositoryPort(Protocol):
    async def save(self, job: GenerationJob) -> GenerationJob: ...
    async def get_by_id(self, job_id: str, user_id: str) -> Optional[GenerationJob]: ...
    async def list_by_user(self, user_id: str) -> list[GenerationJob]: ...
