"""AdBanana records: brief in, script package out.

These are schema-validated with pydantic so a package exported to JSON
parses back into an identical object. Wire names are camelCase.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Platform(str, Enum):
    TIKTOK = "tiktok"
    INSTAGRAM_REELS = "instagram_reels"
    YOUTUBE_SHORTS = "youtube_shorts"


class Objective(str, Enum):
    AWARENESS = "awareness"
    TRAFFIC = "traffic"
    CONVERSION = "conversion"


class AdTone(str, Enum):
    PLAYFUL = "playful"
    BOLD = "bold"
    AUTHORITATIVE = "authoritative"
    FRIENDLY = "friendly"
    LUXURY = "luxury"


class _AdModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AdBrief(_AdModel):
    brand: str = Field(min_length=1)
    product: str = Field(min_length=1)
    value_prop: str = Field(min_length=1)
    audience: str = Field(min_length=1)
    objective: Objective
    platform: Platform
    duration_sec: float = Field(ge=6, le=60)
    brief_context: Optional[str] = None
    sensitive_claims: bool = False


class AdBeat(_AdModel):
    t_start: float = Field(ge=0)
    t_end: float = Field(ge=0)
    voiceover: Optional[str] = None
    on_screen_text: Optional[str] = None
    overlay: list[str] = Field(default_factory=list)
    shot_notes: Optional[str] = None


class AdScript(_AdModel):
    hook: str
    beats: list[AdBeat]
    cta: str
    captions: str
    hashtags: list[str]
    compliance_notes: list[str]


class AdVariant(_AdModel):
    id: str
    tone: Optional[AdTone] = None
    hook_rewrite: Optional[str] = None
    cta_rewrite: Optional[str] = None
    platform: Optional[Platform] = None
    script: AdScript


class AdPackage(_AdModel):
    brief: AdBrief
    base_script: AdScript
    variants: list[AdVariant]


class PlatformConstraint(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_caption_length: int
    safe_area_percent: float
    recommended_durations: tuple[int, ...]


PLATFORM_CONSTRAINTS: dict[Platform, PlatformConstraint] = {
    Platform.TIKTOK: PlatformConstraint(
        max_caption_length=150, safe_area_percent=0.8, recommended_durations=(6, 15, 30)
    ),
    Platform.INSTAGRAM_REELS: PlatformConstraint(
        max_caption_length=2200, safe_area_percent=0.85, recommended_durations=(15, 30, 60)
    ),
    Platform.YOUTUBE_SHORTS: PlatformConstraint(
        max_caption_length=100, safe_area_percent=0.9, recommended_durations=(15, 30, 60)
    ),
}
