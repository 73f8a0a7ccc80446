"""
Scene generation: a scene record drives one video job and collects the result
as a project asset.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from backend.src.core.entities.generation_job import GenerationJob, JobStatus
from backend.src.core.entities.project import Scene, VideoAsset
from backend.src.core.exceptions import InputValidationError, NotFoundError

logger = logging.getLogger(__name__)


def build_scene_prompt(scene_config: dict[str, Any], video_style: str) -> str:
    """Compose the video prompt from a scene configuration."""
    lines = [scene_config.get("scene_description") or scene_config.get("scene_name", "")]
    for label, key in (("Location", "location"), ("Lighting", "lighting"), ("Weather", "weather")):
        if scene_config.get(key):
            lines.append(f"{label}: {scene_config[key]}")
    cast = [c.get("name", "") if isinstance(c, dict) else str(c) for c in scene_config.get("cast") or []]
    cast = [name for name in cast if name]
    if cast:
        lines.append(f"Cast: {', '.join(cast)}")
    if video_style and video_style != "None":
        lines.append(f"Style: {video_style}")
    if scene_config.get("voiceover"):
        lines.append(f"Voiceover: {scene_config['voiceover']}")
    return "\n".join(line for line in lines if line)


def video_url_from_result(result: Optional[dict[str, Any]]) -> Optional[str]:
    if not result:
        return None
    video = result.get("video")
    if isinstance(video, dict):
        return video.get("url")
    return result.get("video_url") or result.get("url")


class SceneService:
    def __init__(
        self,
        repository,   # ProjectRepositoryPort
        project_service,
        generation_service,
    ):
        self._repository = repository
        self._projects = project_service
        self._generation = generation_service

    async def generate_scene(
        self,
        user_id: str,
        project_id: str,
        scene_config: dict[str, Any],
        scene_id: Optional[str] = None,
    ) -> tuple[Scene, GenerationJob]:
        project = await self._projects.get_project(user_id, project_id)
        name = (scene_config.get("scene_name") or "").strip()
        if not name:
            raise InputValidationError("scene_name is required")
        if not (scene_config.get("scene_description") or "").strip():
            raise InputValidationError("scene_description is required")

        if scene_id:
            scene = await self._repository.get_scene(project_id, scene_id)
            if scene is None:
                raise NotFoundError("Scene", scene_id)
        else:
            scene = Scene(project_id=project_id, name=name)

        scene.name = name
        scene.location = scene_config.get("location")
        scene.lighting = scene_config.get("lighting")
        scene.weather = scene_config.get("weather")
        scene.description = scene_config.get("scene_description")
        scene.voiceover = scene_config.get("voiceover")
        scene.scene_config = dict(scene_config)
        scene.start_generation()
        scene = await self._repository.save_scene(scene)
        logger.info("Generating scene %s for project %s", scene.id, project_id)

        aspect_ratio = scene_config.get("aspect_ratio") or project.aspect_ratio.value
        video_style = scene_config.get("video_style") or project.video_style.value
        try:
            job = await self._generation.submit_video(
                user_id,
                build_scene_prompt(scene_config, video_style),
                aspect_ratio=aspect_ratio,
                project_id=project_id,
                scene_id=scene.id,
                on_finished=self.finish_scene,
            )
        except Exception:
            scene.fail()
            await self._repository.save_scene(scene)
            raise
        return scene, job

    async def finish_scene(self, job: GenerationJob) -> Optional[Scene]:
        """Apply a terminal video job to its scene; adds an asset on success."""
        if job.project_id is None or job.scene_id is None:
            return None
        scene = await self._repository.get_scene(job.project_id, job.scene_id)
        if scene is None:
            logger.warning("Scene %s vanished before job %s finished", job.scene_id, job.id)
            return None

        url = video_url_from_result(job.result) if job.status == JobStatus.COMPLETED else None
        if url is None:
            scene.fail()
            logger.warning("Scene %s generation failed: %s", scene.id, job.error or "no video URL")
            return await self._repository.save_scene(scene)

        scene.complete(url)
        scene = await self._repository.save_scene(scene)
        await self._repository.save_asset(
            VideoAsset(
                project_id=scene.project_id,
                scene_id=scene.id,
                file_name=f"{scene.name}_generated.mp4",
                file_url=url,
                mime_type="video/mp4",
                asset_type="generated",
                metadata={
                    "scene_config": scene.scene_config,
                    "job_id": job.id,
                    "generated_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        )
        logger.info("Scene %s completed with %s", scene.id, url)
        return scene
