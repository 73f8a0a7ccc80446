"""
Project management API routes: projects, characters, scenes and assets.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from backend.src.adapters.inbound.api.dependencies import get_current_user
from backend.src.core.entities.user import User

router = APIRouter()


class CreateProjectRequest(BaseModel):
    name: str
    description: Optional[str] = None
    aspect_ratio: str = "16:9"
    video_style: str = "Cinematic"


class CreateCharacterRequest(BaseModel):
    name: str
    description: str = ""
    image_url: Optional[str] = None


class SceneConfigRequest(BaseModel):
    scene_id: Optional[str] = None
    scene_name: str
    location: str = ""
    lighting: str = ""
    weather: str = ""
    scene_description: str
    voiceover: Optional[str] = None
    aspect_ratio: Optional[str] = None
    video_style: Optional[str] = None
    cast: list[Any] = Field(default_factory=list)


def _projects(request: Request):
    return request.app.state.container.project_service()


# ── Projects ────────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_project(
    body: CreateProjectRequest,
    request: Request,
    user: User = Depends(get_current_user),
):
    project = await _projects(request).create_project(
        user.id,
        body.name,
        description=body.description,
        aspect_ratio=body.aspect_ratio,
        video_style=body.video_style,
    )
    return project.to_dict()


@router.get("")
async def list_projects(request: Request, user: User = Depends(get_current_user)):
    projects = await _projects(request).list_projects(user.id)
    return [p.to_dict() for p in projects]


@router.get("/{project_id}")
async def get_project(project_id: str, request: Request, user: User = Depends(get_current_user)):
    project = await _projects(request).get_project(user.id, project_id)
    return project.to_dict()


@router.patch("/{project_id}")
async def update_project(
    project_id: str,
    updates: dict[str, Any],
    request: Request,
    user: User = Depends(get_current_user),
):
    project = await _projects(request).update_project(user.id, project_id, updates)
    return project.to_dict()


@router.delete("/{project_id}")
async def delete_project(project_id: str, request: Request, user: User = Depends(get_current_user)):
    await _projects(request).delete_project(user.id, project_id)
    return {"status": "deleted", "project_id": project_id}


# ── Characters ──────────────────────────────────────────────────

@router.post("/{project_id}/characters", status_code=201)
async def add_character(
    project_id: str,
    body: CreateCharacterRequest,
    request: Request,
    user: User = Depends(get_current_user),
):
    character = await _projects(request).add_character(
        user.id, project_id, body.name, description=body.description, image_url=body.image_url
    )
    return character.to_dict()


@router.get("/{project_id}/characters")
async def list_characters(project_id: str, request: Request, user: User = Depends(get_current_user)):
    characters = await _projects(request).list_characters(user.id, project_id)
    return [c.to_dict() for c in characters]


@router.delete("/{project_id}/characters/{character_id}")
async def remove_character(
    project_id: str,
    character_id: str,
    request: Request,
    user: User = Depends(get_current_user),
):
    await _projects(request).remove_character(user.id, project_id, character_id)
    return {"status": "deleted", "character_id": character_id}


# ── Scenes & assets ─────────────────────────────────────────────

@router.post("/{project_id}/scenes", status_code=202)
async def generate_scene(
    project_id: str,
    body: SceneConfigRequest,
    request: Request,
    user: User = Depends(get_current_user),
):
    config = body.model_dump(exclude={"scene_id"}, exclude_none=True)
    scene, job = await request.app.state.container.scene_service().generate_scene(
        user.id, project_id, config, scene_id=body.scene_id
    )
    return {"scene": scene.to_dict(), "job": job.to_dict()}


@router.get("/{project_id}/scenes")
async def list_scenes(project_id: str, request: Request, user: User = Depends(get_current_user)):
    scenes = await _projects(request).list_scenes(user.id, project_id)
    return [s.to_dict() for s in scenes]


@router.get("/{project_id}/assets")
async def list_assets(project_id: str, request: Request, user: User = Depends(get_current_user)):
    assets = await _projects(request).list_assets(user.id, project_id)
    return [a.to_dict() for a in assets]
