"""PostgreSQL implementation of ProjectRepositoryPort using SQLAlchemy async."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from backend.src.core.entities.project import (
    AspectRatio,
    Character,
    Project,
    Scene,
    SceneStatus,
    VideoAsset,
    VideoStyle,
)
from backend.src.infrastructure.database import Base

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectModel(Base):  # type: ignore[misc]
    """SQLAlchemy model for the ``projects`` table."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    aspect_ratio = Column(String(8), nullable=False, default=AspectRatio.LANDSCAPE.value)
    video_style = Column(String(32), nullable=False, default=VideoStyle.CINEMATIC.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_entity(self) -> Project:
        return Project(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            description=self.description,
            aspect_ratio=AspectRatio(self.aspect_ratio),
            video_style=VideoStyle(self.video_style),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, project: Project) -> ProjectModel:
        return cls(
            id=project.id,
            user_id=project.user_id,
            name=project.name,
            description=project.description,
            aspect_ratio=project.aspect_ratio.value,
            video_style=project.video_style.value,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class CharacterModel(Base):  # type: ignore[misc]
    """SQLAlchemy model for the ``characters`` table."""

    __tablename__ = "characters"

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_entity(self) -> Character:
        return Character(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            description=self.description or "",
            image_url=self.image_url,
            created_at=self.created_at,
        )

    @classmethod
    def from_entity(cls, character: Character) -> CharacterModel:
        return cls(
            id=character.id,
            project_id=character.project_id,
            name=character.name,
            description=character.description,
            image_url=character.image_url,
            created_at=character.created_at,
        )


class SceneModel(Base):  # type: ignore[misc]
    """SQLAlchemy model for the ``scenes`` table."""

    __tablename__ = "scenes"

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    location = Column(Text, nullable=True)
    lighting = Column(Text, nullable=True)
    weather = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    voiceover = Column(Text, nullable=True)
    scene_config = Column(JSON, nullable=False, default=dict)
    status = Column(String(32), nullable=False, default=SceneStatus.DRAFT.value)
    generated_video_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_entity(self) -> Scene:
        return Scene(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            location=self.location,
            lighting=self.lighting,
            weather=self.weather,
            description=self.description,
            voiceover=self.voiceover,
            scene_config=self.scene_config or {},
            status=SceneStatus(self.status),
            generated_video_url=self.generated_video_url,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, scene: Scene) -> SceneModel:
        return cls(
            id=scene.id,
            project_id=scene.project_id,
            name=scene.name,
            location=scene.location,
            lighting=scene.lighting,
            weather=scene.weather,
            description=scene.description,
            voiceover=scene.voiceover,
            scene_config=scene.scene_config,
            status=scene.status.value,
            generated_video_url=scene.generated_video_url,
            created_at=scene.created_at,
            updated_at=scene.updated_at,
        )


class VideoAssetModel(Base):  # type: ignore[misc]
    """SQLAlchemy model for the ``video_assets`` table."""

    __tablename__ = "video_assets"

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    scene_id = Column(String(36), ForeignKey("scenes.id", ondelete="SET NULL"), nullable=True)
    file_name = Column(String(512), nullable=False)
    file_url = Column(Text, nullable=False)
    asset_type = Column(String(32), nullable=False, default="generated")
    mime_type = Column(String(64), nullable=True)
    duration = Column(Float, nullable=True)
    file_size = Column(Integer, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_entity(self) -> VideoAsset:
        return VideoAsset(
            id=self.id,
            project_id=self.project_id,
            scene_id=self.scene_id,
            file_name=self.file_name,
            file_url=self.file_url,
            asset_type=self.asset_type,
            mime_type=self.mime_type,
            duration=self.duration,
            file_size=self.file_size,
            metadata=self.metadata_ or {},
            created_at=self.created_at,
        )

    @classmethod
    def from_entity(cls, asset: VideoAsset) -> VideoAssetModel:
        return cls(
            id=asset.id,
            project_id=asset.project_id,
            scene_id=asset.scene_id,
            file_name=asset.file_name,
            file_url=asset.file_url,
            asset_type=asset.asset_type,
            mime_type=asset.mime_type,
            duration=asset.duration,
            file_size=asset.file_size,
            metadata_=asset.metadata,
            created_at=asset.created_at,
        )


class PostgresProjectRepository:
    """Implements :class:`ProjectRepositoryPort` backed by PostgreSQL.

    Child rows are removed by the ``ON DELETE CASCADE`` foreign keys, not here.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # -- Projects --------------------------------------------------------------

    async def save(self, project: Project) -> Project:
        """Insert or update a project row; returns the stored row."""
        async with self._session_factory() as session:
            existing = await session.get(ProjectModel, project.id)
            if existing is not None and existing.user_id != project.user_id:
                raise PermissionError(f"Project {project.id} belongs to another user")
            model = ProjectModel.from_entity(project)
            if existing is not None:
                model.created_at = existing.created_at
            model.updated_at = _utcnow()
            merged = await session.merge(model)
            await session.commit()
            logger.debug("Saved project %s to PostgreSQL", project.id)
            return merged.to_entity()

    async def get_by_id(self, project_id: str, user_id: str) -> Optional[Project]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProjectModel).where(
                    ProjectModel.id == project_id, ProjectModel.user_id == user_id
                )
            )
            row = result.scalars().first()
            if row is None:
                logger.debug("Project %s not found in PostgreSQL", project_id)
                return None
            return row.to_entity()

    async def list_by_user(self, user_id: str) -> list[Project]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProjectModel)
                .where(ProjectModel.user_id == user_id)
                .order_by(ProjectModel.created_at.desc())
            )
            return [row.to_entity() for row in result.scalars().all()]

    async def delete(self, project_id: str, user_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProjectModel).where(
                    ProjectModel.id == project_id, ProjectModel.user_id == user_id
                )
            )
            row = result.scalars().first()
            if row is None:
                logger.warning("Attempted to delete non-existent project %s", project_id)
                return False
            await session.delete(row)
            await session.commit()
            logger.debug("Deleted project %s from PostgreSQL", project_id)
            return True

    # -- Characters ------------------------------------------------------------

    async def save_character(self, character: Character) -> Character:
        async with self._session_factory() as session:
            merged = await session.merge(CharacterModel.from_entity(character))
            await session.commit()
            return merged.to_entity()

    async def list_characters(self, project_id: str) -> list[Character]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CharacterModel)
                .where(CharacterModel.project_id == project_id)
                .order_by(CharacterModel.created_at)
            )
            return [row.to_entity() for row in result.scalars().all()]

    async def delete_character(self, project_id: str, character_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(CharacterModel, character_id)
            if row is None or row.project_id != project_id:
                return False
            await session.delete(row)
            await session.commit()
            return True

    # -- Scenes ----------------------------------------------------------------

    async def save_scene(self, scene: Scene) -> Scene:
        async with self._session_factory() as session:
            merged = await session.merge(SceneModel.from_entity(scene))
            await session.commit()
            return merged.to_entity()

    async def get_scene(self, project_id: str, scene_id: str) -> Optional[Scene]:
        async with self._session_factory() as session:
            row = await session.get(SceneModel, scene_id)
            if row is None or row.project_id != project_id:
                return None
            return row.to_entity()

    async def list_scenes(self, project_id: str) -> list[Scene]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SceneModel)
                .where(SceneModel.project_id == project_id)
                .order_by(SceneModel.created_at)
            )
            return [row.to_entity() for row in result.scalars().all()]

    # -- Assets ----------------------------------------------------------------

    async def save_asset(self, asset: VideoAsset) -> VideoAsset:
        async with self._session_factory() as session:
            merged = await session.merge(VideoAssetModel.from_entity(asset))
            await session.commit()
            return merged.to_entity()

    async def list_assets(self, project_id: str) -> list[VideoAsset]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(VideoAssetModel)
                .where(VideoAssetModel.project_id == project_id)
                .order_by(VideoAssetModel.created_at)
            )
            return [row.to_entity() for row in result.scalars().all()]
