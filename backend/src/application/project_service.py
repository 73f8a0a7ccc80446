"""
Project management use case: projects and their characters, scenes and assets.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from backend.src.core.entities.project import (
    AspectRatio,
    Character,
    Project,
    Scene,
    VideoAsset,
    VideoStyle,
)
from backend.src.core.exceptions import InputValidationError, NotFoundError, ProjectNotFoundError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "aspect_ratio", "video_style"})


def _parse_enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise InputValidationError(f"Invalid {field_name} '{value}'. Allowed: {allowed}") from None


class ProjectService:
    """User-scoped CRUD over projects.

    Every mutating call returns what the repository handed back, never the
    caller's own input object.
    """

    def __init__(self, repository):  # ProjectRepositoryPort
        self._repository = repository

    # -- Projects --------------------------------------------------------------

    async def create_project(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        aspect_ratio: str = AspectRatio.LANDSCAPE.value,
        video_style: str = VideoStyle.CINEMATIC.value,
    ) -> Project:
        if not name or not name.strip():
            raise InputValidationError("Project name is required")
        project = Project(
            user_id=user_id,
            name=name.strip(),
            description=description,
            aspect_ratio=_parse_enum(AspectRatio, aspect_ratio, "aspect_ratio"),
            video_style=_parse_enum(VideoStyle, video_style, "video_style"),
        )
        saved = await self._repository.save(project)
        logger.info("Project created: %s (%s) for %s", saved.id, saved.name, user_id)
        return saved

    async def get_project(self, user_id: str, project_id: str) -> Project:
        project = await self._repository.get_by_id(project_id, user_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def list_projects(self, user_id: str) -> list[Project]:
        return await self._repository.list_by_user(user_id)

    async def update_project(self, user_id: str, project_id: str, updates: dict[str, Any]) -> Project:
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise InputValidationError(f"Unknown project field(s): {', '.join(sorted(unknown))}")

        project = await self.get_project(user_id, project_id)
        if "name" in updates:
            name = updates["name"]
            if not name or not str(name).strip():
                raise InputValidationError("Project name is required")
            project.name = str(name).strip()
        if "description" in updates:
            project.description = updates["description"]
        if "aspect_ratio" in updates:
            project.aspect_ratio = _parse_enum(AspectRatio, updates["aspect_ratio"], "aspect_ratio")
        if "video_style" in updates:
            project.video_style = _parse_enum(VideoStyle, updates["video_style"], "video_style")

        saved = await self._repository.save(project)
        logger.info("Project updated: %s (%s)", project_id, ", ".join(sorted(updates)) or "no fields")
        return saved

    async def delete_project(self, user_id: str, project_id: str) -> None:
        deleted = await self._repository.delete(project_id, user_id)
        if not deleted:
            raise ProjectNotFoundError(project_id)
        logger.info("Project deleted: %s", project_id)

    # -- Characters ------------------------------------------------------------

    async def add_character(
        self,
        user_id: str,
        project_id: str,
        name: str,
        description: str = "",
        image_url: Optional[str] = None,
    ) -> Character:
        await self.get_project(user_id, project_id)
        if not name or not name.strip():
            raise InputValidationError("Character name is required")
        character = Character(
            project_id=project_id,
            name=name.strip(),
            description=description or "",
            image_url=image_url,
        )
        return await self._repository.save_character(character)

    async def list_characters(self, user_id: str, project_id: str) -> list[Character]:
        await self.get_project(user_id, project_id)
        return await self._repository.list_characters(project_id)

    async def remove_character(self, user_id: str, project_id: str, character_id: str) -> None:
        await self.get_project(user_id, project_id)
        if not await self._repository.delete_character(project_id, character_id):
            raise NotFoundError("Character", character_id)

    # -- Scenes and assets -----------------------------------------------------

    async def get_scene(self, user_id: str, project_id: str, scene_id: str) -> Scene:
        await self.get_project(user_id, project_id)
        scene = await self._repository.get_scene(project_id, scene_id)
        if scene is None:
            raise NotFoundError("Scene", scene_id)
        return scene

    async def list_scenes(self, user_id: str, project_id: str) -> list[Scene]:
        await self.get_project(user_id, project_id)
        return await self._repository.list_scenes(project_id)

    async def list_assets(self, user_id: str, project_id: str) -> list[VideoAsset]:
        await self.get_project(user_id, project_id)
        return await self._repository.list_assets(project_id)
