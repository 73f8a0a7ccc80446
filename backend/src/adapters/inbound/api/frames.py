"""
Frame editing API routes: upload a video, browse, edit and analyze its frames.
"""
from __future__ import annotations

import uuid
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile
from pydantic import BaseModel

from backend.src.adapters.inbound.api.dependencies import get_current_user
from backend.src.core.entities.user import User
from backend.src.core.exceptions import InputValidationError
from backend.src.core.value_objects.trim_window import TrimWindow

router = APIRouter()

CHUNK_SIZE = 8 * 1024 * 1024  # 8MB


class EditFrameRequest(BaseModel):
    prompt: str


def _validate_extension(filename: str, allowed: list[str]) -> None:
    ext = Path(filename).suffix.lower()
    if ext not in allowed:
        raise InputValidationError(
            f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(allowed))}"
        )


async def _chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def _sessions(request: Request):
    return request.app.state.container.frame_session_service()


@router.post("/sessions", status_code=201)
async def start_session(
    request: Request,
    file: UploadFile = File(...),
    fps: Optional[float] = Form(None),
    start: float = Form(0.0),
    end: Optional[float] = Form(None),
    user: User = Depends(get_current_user),
):
    """Upload a video and extract frames from the trimmed window."""
    container = request.app.state.container
    settings = container.settings

    original_name = file.filename or "upload.mp4"
    _validate_extension(original_name, settings.web.allowed_extensions)
    window = TrimWindow(start, end)

    max_size_bytes = settings.web.max_upload_size_mb * 1024 * 1024
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > max_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {settings.web.max_upload_size_mb}MB",
        )

    storage = container.file_storage()
    video_path = await storage.save_stream(
        _chunks(file), original_name, directory=str(uuid.uuid4()), max_bytes=max_size_bytes
    )
    try:
        session = await _sessions(request).start_session(
            user.id,
            video_path,
            fps=fps if fps is not None else settings.frame_extraction.default_fps,
            window=window,
        )
    except Exception:
        await storage.delete_file(video_path)
        raise
    return session.to_dict()


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, request: Request, user: User = Depends(get_current_user)):
    return _sessions(request).get_session(user.id, session_id).to_dict()


@router.delete("/sessions/{session_id}")
async def discard_session(session_id: str, request: Request, user: User = Depends(get_current_user)):
    service = _sessions(request)
    video_path = service.get_session(user.id, session_id).video_path
    service.discard_session(user.id, session_id)
    await request.app.state.container.file_storage().delete_file(video_path)
    return {"status": "deleted", "session_id": session_id}


@router.get("/sessions/{session_id}/frames/{index}")
async def get_frame(
    session_id: str,
    index: int,
    request: Request,
    original: bool = False,
    user: User = Depends(get_current_user),
):
    frame = _sessions(request).get_frame(user.id, session_id, index, original=original)
    return Response(content=frame.image_data, media_type=frame.mime_type)


@router.post("/sessions/{session_id}/frames/{index}/edit")
async def edit_frame(
    session_id: str,
    index: int,
    body: EditFrameRequest,
    request: Request,
    user: User = Depends(get_current_user),
):
    frame = await _sessions(request).edit_frame(user.id, session_id, index, body.prompt)
    return {
        "id": frame.id,
        "timestamp_seconds": frame.timestamp_seconds,
        "mime_type": frame.mime_type,
        "edited": True,
    }


@router.delete("/sessions/{session_id}/frames/{index}/edit")
async def revert_frame(
    session_id: str,
    index: int,
    request: Request,
    user: User = Depends(get_current_user),
):
    reverted = _sessions(request).revert_frame(user.id, session_id, index)
    return {"id": index, "reverted": reverted}


@router.post("/sessions/{session_id}/analyze")
async def analyze_frames(session_id: str, request: Request, user: User = Depends(get_current_user)):
    suggestions = await _sessions(request).analyze_frames(user.id, session_id)
    return {
        "suggestions": [
            {"frame_index": s.frame_index, "suggestion": s.suggestion} for s in suggestions
        ]
    }
