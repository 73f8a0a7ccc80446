"""
Generation API routes: submit jobs and batches, then poll their records.
"""
from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel, Field

from backend.src.adapters.inbound.api.dependencies import get_current_user, read_image
from backend.src.core.entities.user import User
from backend.src.core.exceptions import InputValidationError
from backend.src.core.value_objects.generation_request import ImageInput

router = APIRouter()


class StitchRequest(BaseModel):
    video_urls: list[str] = Field(default_factory=list)


def _generation(request: Request):
    return request.app.state.container.generation_service()


@router.post("/videos", status_code=202)
async def submit_video(
    request: Request,
    prompt: str = Form(...),
    aspect_ratio: str = Form("16:9"),
    duration: str = Form("8s"),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
):
    source: Optional[ImageInput] = await read_image(image) if image is not None else None
    job = await _generation(request).submit_video(
        user.id, prompt, image=source, aspect_ratio=aspect_ratio, duration=duration
    )
    return job.to_dict()


@router.post("/upscale", status_code=202)
async def submit_upscale(
    request: Request,
    image: UploadFile = File(...),
    scale: int = Form(2),
    user: User = Depends(get_current_user),
):
    job = await _generation(request).submit_upscale(user.id, await read_image(image), scale=scale)
    return job.to_dict()


@router.post("/stitch", status_code=202)
async def submit_stitch(body: StitchRequest, request: Request, user: User = Depends(get_current_user)):
    job = await _generation(request).submit_stitch(user.id, body.video_urls)
    return job.to_dict()


@router.post("/images", status_code=202)
async def submit_images(
    request: Request,
    sketch: UploadFile = File(...),
    references: list[UploadFile] = File(...),
    description: str = Form(...),
    user: User = Depends(get_current_user),
):
    """Sketch plus reference images; ``description`` is a JSON object."""
    try:
        parsed = json.loads(description)
    except json.JSONDecodeError as exc:
        raise InputValidationError(f"description must be a JSON object: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise InputValidationError("description must be a JSON object")

    sketch_image = await read_image(sketch, "sketch")
    reference_images = [await read_image(ref, f"reference {i + 1}") for i, ref in enumerate(references)]
    job = await _generation(request).submit_images(user.id, sketch_image, reference_images, parsed)
    return job.to_dict()


@router.get("/jobs")
async def list_jobs(request: Request, user: User = Depends(get_current_user)):
    jobs = await _generation(request).list_jobs(user.id)
    return [j.to_dict() for j in jobs]


@router.get("/jobs/{job_id}")
async def get_job(job_id: str, request: Request, user: User = Depends(get_current_user)):
    job = await _generation(request).get_job(user.id, job_id)
    return job.to_dict()


@router.post("/batches/videos", status_code=202)
async def submit_video_batch(
    request: Request,
    images: list[UploadFile] = File(...),
    scene_description: str = Form(...),
    image_ids: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
):
    """One video per uploaded image. ``image_ids`` is an optional comma list."""
    ids = [i.strip() for i in image_ids.split(",")] if image_ids else []
    if ids and len(ids) != len(images):
        raise InputValidationError("image_ids must list one id per image")
    keyed = []
    for i, upload in enumerate(images):
        image = await read_image(upload, f"image {i + 1}")
        keyed.append((ids[i] if ids else str(i + 1), image))
    batch = await _generation(request).submit_video_batch(user.id, keyed, scene_description)
    return {"batch_id": batch.id, "total": batch.total, "job_ids": [j.id for j in batch.items]}


@router.get("/batches/{batch_id}")
async def get_batch(batch_id: str, request: Request, user: User = Depends(get_current_user)):
    return _generation(request).get_batch(user.id, batch_id).to_dict()
