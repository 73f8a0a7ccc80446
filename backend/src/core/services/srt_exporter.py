"""SubRip (SRT) rendering of ad script beats."""

from __future__ import annotations

from backend.src.core.entities.ad_package import AdScript

SRT_FILENAME = "script_captions.srt"


def format_srt_timestamp(seconds: float) -> str:
    """Render *seconds* as ``HH:MM:SS,mmm``."""
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"


def script_to_srt(script: AdScript) -> str:
    """One cue per beat that carries voiceover text, numbered from 1."""
    cues: list[str] = []
    for beat in script.beats:
        if not beat.voiceover:
            continue
        cues.append(
            f"{len(cues) + 1}\n"
            f"{format_srt_timestamp(beat.t_start)} --> {format_srt_timestamp(beat.t_end)}\n"
            f"{beat.voiceover}\n\n"
        )
    return "".join(cues)
