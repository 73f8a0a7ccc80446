"""
Frame editing sessions: extract frames from an uploaded video, edit them one
by one through a prompt and collect edit suggestions.
"""
from __future__ import annotations

import logging
from typing import Optional

from backend.src.core.entities.frame import Frame, FrameSession, FrameSuggestion
from backend.src.core.exceptions import InputValidationError, NotFoundError
from backend.src.core.services.rate_limiter import MinIntervalGate
from backend.src.core.value_objects.trim_window import TrimWindow

logger = logging.getLogger(__name__)

ANALYSIS_STRIDE = 5


class FrameSessionService:
    """Holds sessions in memory; nothing here is persisted."""

    def __init__(
        self,
        frame_extraction,   # FrameExtractionPort
        frame_vision,       # FrameVisionPort | None
        rate_gate: MinIntervalGate,
        analysis_stride: int = ANALYSIS_STRIDE,
    ):
        self._extractor = frame_extraction
        self._vision = frame_vision
        self._rate_gate = rate_gate
        self._stride = max(1, analysis_stride)
        self._sessions: dict[str, FrameSession] = {}

    async def start_session(
        self,
        user_id: str,
        video_path: str,
        fps: float = 1.0,
        window: Optional[TrimWindow] = None,
    ) -> FrameSession:
        if fps <= 0:
            raise InputValidationError("fps must be positive")
        frames = await self._extractor.extract_frames(video_path, fps, window or TrimWindow())
        session = FrameSession(user_id=user_id, video_path=video_path, frames=frames)
        self._sessions[session.id] = session
        logger.info(
            "Frame session %s started for %s with %d frame(s)", session.id, user_id, len(frames)
        )
        return session

    def get_session(self, user_id: str, session_id: str) -> FrameSession:
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError("Frame session", session_id)
        return session

    def get_frame(self, user_id: str, session_id: str, index: int, original: bool = False) -> Frame:
        return self.get_session(user_id, session_id).frame(index, original=original)

    async def edit_frame(self, user_id: str, session_id: str, index: int, prompt: str) -> Frame:
        session = self.get_session(user_id, session_id)
        if not prompt or not prompt.strip():
            raise InputValidationError("An edit prompt is required")
        current = session.frame(index)
        vision = self._require_vision()
        self._rate_gate.acquire(f"{user_id}:frames")

        edited = await vision.edit_frame(current, prompt.strip())
        session.overlay.set(index, edited)
        logger.info("Frame %d of session %s edited", index, session_id)
        return edited

    def revert_frame(self, user_id: str, session_id: str, index: int) -> bool:
        session = self.get_session(user_id, session_id)
        reverted = session.overlay.remove(index)
        if reverted:
            logger.info("Frame %d of session %s reverted", index, session_id)
        return reverted

    async def analyze_frames(self, user_id: str, session_id: str) -> list[FrameSuggestion]:
        """Ask for suggestions on every Nth frame; indices come back as frame ids."""
        session = self.get_session(user_id, session_id)
        sent = session.overlay.effective(session.frames)[:: self._stride]
        if not sent:
            raise InputValidationError("The session has no frames to analyze")
        vision = self._require_vision()
        self._rate_gate.acquire(f"{user_id}:frames")

        raw = await vision.analyze_frames(sent)
        suggestions = [
            FrameSuggestion(frame_index=sent[s.frame_index].id, suggestion=s.suggestion)
            for s in raw
            if 0 <= s.frame_index < len(sent)
        ]
        session.suggestions = suggestions
        logger.info(
            "Session %s: %d suggestion(s) for %d sampled frame(s)",
            session_id, len(suggestions), len(sent),
        )
        return suggestions

    def discard_session(self, user_id: str, session_id: str) -> None:
        self.get_session(user_id, session_id)
        del self._sessions[session_id]
        logger.info("Frame session %s discarded", session_id)

    def _require_vision(self):
        if self._vision is None:
            raise InputValidationError("Frame editing is not configured (GEMINI_API_KEY missing)")
        return self._vision
