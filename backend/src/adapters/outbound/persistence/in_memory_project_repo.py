"""In-memory implementation of ProjectRepositoryPort."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Optional

from backend.src.core.entities.project import Character, Project, Scene, VideoAsset

logger = logging.getLogger(__name__)


class InMemoryProjectRepository:
    """Task-safe in-memory project store.

    Returns copies so callers only ever hold the store's authoritative state.
    Deleting a project leaves its children in place.
    """

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}
        self._characters: dict[str, Character] = {}
        self._scenes: dict[str, Scene] = {}
        self._assets: dict[str, VideoAsset] = {}
        self._lock = asyncio.Lock()

    # -- Projects --------------------------------------------------------------

    async def save(self, project: Project) -> Project:
        """Persist (or overwrite) a project, refreshing ``updated_at``."""
        async with self._lock:
            existing = self._projects.get(project.id)
            if existing is not None and existing.user_id != project.user_id:
                raise PermissionError(f"Project {project.id} belongs to another user")
            stored = copy.deepcopy(project)
            if existing is not None:
                stored.created_at = existing.created_at
            stored.touch()
            self._projects[stored.id] = stored
            logger.debug("Saved project %s", stored.id)
            return copy.deepcopy(stored)

    async def get_by_id(self, project_id: str, user_id: str) -> Optional[Project]:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None or project.user_id != user_id:
                logger.debug("Project %s not found for user %s", project_id, user_id)
                return None
            return copy.deepcopy(project)

    async def list_by_user(self, user_id: str) -> list[Project]:
        async with self._lock:
            owned = [p for p in self._projects.values() if p.user_id == user_id]
            owned.sort(key=lambda p: p.created_at, reverse=True)
            return copy.deepcopy(owned)

    async def delete(self, project_id: str, user_id: str) -> bool:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None or project.user_id != user_id:
                logger.warning("Attempted to delete non-existent project %s", project_id)
                return False
            del self._projects[project_id]
            logger.debug("Deleted project %s", project_id)
            return True

    # -- Characters ------------------------------------------------------------

    async def save_character(self, character: Character) -> Character:
        async with self._lock:
            self._characters[character.id] = copy.deepcopy(character)
            return copy.deepcopy(character)

    async def list_characters(self, project_id: str) -> list[Character]:
        async with self._lock:
            found = [c for c in self._characters.values() if c.project_id == project_id]
            found.sort(key=lambda c: c.created_at)
            return copy.deepcopy(found)

    async def delete_character(self, project_id: str, character_id: str) -> bool:
        async with self._lock:
            character = self._characters.get(character_id)
            if character is None or character.project_id != project_id:
                return False
            del self._characters[character_id]
            return True

    # -- Scenes ----------------------------------------------------------------

    async def save_scene(self, scene: Scene) -> Scene:
        async with self._lock:
            self._scenes[scene.id] = copy.deepcopy(scene)
            return copy.deepcopy(scene)

    async def get_scene(self, project_id: str, scene_id: str) -> Optional[Scene]:
        async with self._lock:
            scene = self._scenes.get(scene_id)
            if scene is None or scene.project_id != project_id:
                return None
            return copy.deepcopy(scene)

    async def list_scenes(self, project_id: str) -> list[Scene]:
        async with self._lock:
            found = [s for s in self._scenes.values() if s.project_id == project_id]
            found.sort(key=lambda s: s.created_at)
            return copy.deepcopy(found)

    # -- Assets ----------------------------------------------------------------

    async def save_asset(self, asset: VideoAsset) -> VideoAsset:
        async with self._lock:
            self._assets[asset.id] = copy.deepcopy(asset)
            return copy.deepcopy(asset)

    async def list_assets(self, project_id: str) -> list[VideoAsset]:
        async with self._lock:
            found = [a for a in self._assets.values() if a.project_id == project_id]
            found.sort(key=lambda a: a.created_at)
            return copy.deepcopy(found)
