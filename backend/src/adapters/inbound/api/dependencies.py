"""FastAPI dependencies for authentication and request helpers."""
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request, UploadFile

from backend.src.core.entities.user import User
from backend.src.core.exceptions import InputValidationError
from backend.src.core.value_objects.generation_request import ImageInput

MAX_IMAGE_BYTES = 20 * 1024 * 1024


async def get_current_user(request: Request) -> User:
    """Extract the authenticated user from the request.

    The user is attached by the auth middleware in fastapi_app.py. Without
    configured credentials the noop adapter always provides a dev user.
    """
    user: Optional[User] = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def get_container(request: Request):
    return request.app.state.container


async def read_image(upload: UploadFile, field_name: str = "image") -> ImageInput:
    """Read an uploaded image into memory, enforcing type and size."""
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise InputValidationError(f"{field_name} must be an image, got '{content_type or 'unknown'}'")
    data = await upload.read()
    if not data:
        raise InputValidationError(f"{field_name} is empty")
    if len(data) > MAX_IMAGE_BYTES:
        raise InputValidationError(f"{field_name} exceeds {MAX_IMAGE_BYTES // (1024 * 1024)}MB")
    return ImageInput(data=data, mime_type=content_type, name=upload.filename or field_name)
