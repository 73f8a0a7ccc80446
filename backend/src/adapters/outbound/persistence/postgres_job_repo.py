"""PostgreSQL implementation of JobRepositoryPort (``processing_jobs`` table)."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from backend.src.core.entities.generation_job import FailureKind, GenerationJob, JobKind, JobStatus
from backend.src.infrastructure.database import Base

logger = logging.getLogger(__name__)


class ProcessingJobModel(Base):  # type: ignore[misc]
    __tablename__ = "processing_jobs"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    scene_id = Column(String(36), ForeignKey("scenes.id", ondelete="SET NULL"), nullable=True)
    job_type = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, default=JobStatus.PENDING.value)
    progress = Column(Integer, nullable=False, default=0)
    output_data = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    failure = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def to_entity(self) -> GenerationJob:
        return GenerationJob(
            id=self.id,
            kind=JobKind(self.job_type),
            user_id=self.user_id,
            project_id=self.project_id,
            scene_id=self.scene_id,
            status=JobStatus(self.status),
            progress=self.progress,
            result=self.output_data,
            error=self.error_message,
            failure=FailureKind(self.failure) if self.failure else None,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, job: GenerationJob) -> ProcessingJobModel:
        return cls(
            id=job.id,
            user_id=job.user_id,
            project_id=job.project_id,
            scene_id=job.scene_id,
            job_type=job.kind.value,
            status=job.status.value,
            progress=job.progress,
            output_data=job.result,
            error_message=job.error,
            failure=job.failure.value if job.failure else None,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class PostgresJobRepository:
    """Implements :class:`JobRepositoryPort` backed by PostgreSQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, job: GenerationJob) -> GenerationJob:
        async with self._session_factory() as session:
            merged = await session.merge(ProcessingJobModel.from_entity(job))
            await session.commit()
            logger.debug("Saved job %s status=%s to PostgreSQL", job.id, job.status.value)
            return merged.to_entity()

    async def get_by_id(self, job_id: str, user_id: str) -> Optional[GenerationJob]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProcessingJobModel).where(
                    ProcessingJobModel.id == job_id, ProcessingJobModel.user_id == user_id
                )
            )
            row = result.scalars().first()
            return row.to_entity() if row is not None else None

    async def list_by_user(self, user_id: str) -> list[GenerationJob]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProcessingJobModel)
                .where(ProcessingJobModel.user_id == user_id)
                .order_by(ProcessingJobModel.created_at.desc())
            )
            return [row.to_entity() for row in result.scalars().all()]
