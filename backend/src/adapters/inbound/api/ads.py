"""
Ad package API routes. Bodies use the camelCase wire names of the ad models.
"""
from __future__ import annotations

import re
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.src.adapters.inbound.api.dependencies import get_current_user
from backend.src.core.entities.ad_package import AdBrief, AdPackage, AdScript
from backend.src.core.entities.user import User

router = APIRouter()

# Characters that cannot appear inside a quoted ASCII filename parameter.
_UNSAFE_FILENAME_CHARS = re.compile(r'[^\x20-\x7e]|["\\]')


class GeneratePackageRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    brief: AdBrief
    variant_count: int = Field(default=3, ge=1, le=5)


def _ads(request: Request):
    return request.app.state.container.ad_package_service()


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    value = f'attachment; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


def _download(filename: str, content: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.post("/packages")
async def generate_package(
    body: GeneratePackageRequest,
    request: Request,
    user: User = Depends(get_current_user),
):
    package = await _ads(request).generate(user.id, body.brief, body.variant_count)
    return package.model_dump(mode="json", by_alias=True)


@router.post("/export/json")
async def export_json(package: AdPackage, request: Request, user: User = Depends(get_current_user)):
    filename, text = _ads(request).export_json(package)
    return _download(filename, text, "application/json")


@router.post("/export/srt")
async def export_srt(script: AdScript, request: Request, user: User = Depends(get_current_user)):
    filename, text = _ads(request).export_srt(script)
    return _download(filename, text, "application/x-subrip")


@router.post("/import")
async def import_package(request: Request, user: User = Depends(get_current_user)):
    """Validate raw exported JSON and echo the parsed package."""
    text = (await request.body()).decode("utf-8")
    package = _ads(request).parse_json(text)
    return package.model_dump(mode="json", by_alias=True)
