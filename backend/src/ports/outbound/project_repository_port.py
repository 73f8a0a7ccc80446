"""Port for user-scoped project persistence (projects and their children)."""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable
if TYPE_CHECKING:
    from backend.src.core.entities.project import Character, Project, Scene, VideoAsset


@runtime_checkable
class ProjectRepositoryPort(Protocol):
    async def save(self, project: Project) -> Project: ...
    async def get_by_id(self, project_id: str, user_id: str) -> Optional[Project]: ...
    async def list_by_user(self, user_id: str) -> list[Project]: ...
    async def delete(self, project_id: str, user_id: str) -> bool: ...
    async def save_character(self, character: Character) -> Character: ...
    async def list_characters(self, project_id: str) -> list[Character]: ...
    async def delete_character(self, project_id: str, character_id: str) -> bool: ...
    async def save_scene(self, scene: Scene) -> Scene: ...
    async def get_scene(self, project_id: str, scene_id: str) -> Optional[Scene]: ...
    async def list_scenes(self, project_id: str) -> list[Scene]: ...
    async def save_asset(self, asset: VideoAsset) -> VideoAsset: ...
    async def list_assets(self, project_id: str) -> list[VideoAsset]: ...
