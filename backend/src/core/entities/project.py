"""Project aggregate and its child records (characters, scenes, assets)."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AspectRatio(str, Enum):
    LANDSCAPE = "16:9"
    SQUARE = "1:1"
    PORTRAIT = "9:16"


class VideoStyle(str, Enum):
    NONE = "None"
    CINEMATIC = "Cinematic"
    SCRIBBLE = "Scribble"
    FILM_NOIR = "Film-noir"


class SceneStatus(str, Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Project:
    """Descriptive metadata for a user's creative project."""

    user_id: str
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: Optional[str] = None
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    video_style: VideoStyle = VideoStyle.CINEMATIC
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "aspect_ratio": self.aspect_ratio.value,
            "video_style": self.video_style.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class Character:
    project_id: str
    name: str
    description: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Scene:
    project_id: str
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    location: Optional[str] = None
    lighting: Optional[str] = None
    weather: Optional[str] = None
    description: Optional[str] = None
    voiceover: Optional[str] = None
    scene_config: dict[str, Any] = field(default_factory=dict)
    status: SceneStatus = SceneStatus.DRAFT
    generated_video_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def start_generation(self) -> None:
        self.status = SceneStatus.GENERATING
        self.updated_at = _utcnow()

    def complete(self, video_url: str) -> None:
        self.status = SceneStatus.COMPLETED
        self.generated_video_url = video_url
        self.updated_at = _utcnow()

    def fail(self) -> None:
        self.status = SceneStatus.FAILED
        self.updated_at = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "location": self.location,
            "lighting": self.lighting,
            "weather": self.weather,
            "description": self.description,
            "voiceover": self.voiceover,
            "scene_config": self.scene_config,
            "status": self.status.value,
            "generated_video_url": self.generated_video_url,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class VideoAsset:
    project_id: str
    file_name: str
    file_url: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    scene_id: Optional[str] = None
    asset_type: str = "generated"
    mime_type: Optional[str] = "video/mp4"
    duration: Optional[float] = None
    file_size: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "scene_id": self.scene_id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "asset_type": self.asset_type,
            "mime_type": self.mime_type,
            "duration": self.duration,
            "file_size": self.file_size,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }
