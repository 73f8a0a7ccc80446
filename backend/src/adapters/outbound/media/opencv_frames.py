"""OpenCV-based frame extraction adapter.

Implements :class:`FrameExtractionPort` by seeking a single
``cv2.VideoCapture`` to each sample time and JPEG-encoding the decoded
image in memory.
"""
from __future__ import annotations

import asyncio
import logging

import cv2

from backend.src.core.entities.frame import Frame
from backend.src.core.exceptions import FrameExtractionError
from backend.src.core.value_objects.trim_window import TrimWindow

logger = logging.getLogger(__name__)

# Default configuration values used when the caller does not override them.
_DEFAULT_QUALITY: int = 80
_DEFAULT_MAX_FRAMES: int = 2000


class OpenCVFrameExtractor:
    """Extracts still frames at a fixed cadence using OpenCV.

    Satisfies :class:`~backend.src.ports.outbound.frame_extraction_port.FrameExtractionPort`.
    """

    def __init__(self, quality: int = _DEFAULT_QUALITY, max_frames: int = _DEFAULT_MAX_FRAMES) -> None:
        self._quality = quality
        self._max_frames = max_frames

    # -- Port interface --------------------------------------------------------

    async def extract_frames(
        self,
        video_path: str,
        frames_per_second: float,
        window: TrimWindow,
    ) -> list[Frame]:
        """Sample *window* of *video_path* at *frames_per_second*.

        Frames come back in increasing timestamp order with ids 0..N-1.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._extract_frames_sync,
            video_path,
            frames_per_second,
            window,
        )

    def get_video_info(self, video_path: str) -> dict:
        """Return basic video metadata via OpenCV."""
        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            cap.release()
            raise FrameExtractionError(f"Cannot open video file: {video_path}")

        try:
            return self._read_info(cap)
        finally:
            cap.release()

    # -- Private sync helpers --------------------------------------------------

    @staticmethod
    def _read_info(cap: cv2.VideoCapture) -> dict:
        fps: float = cap.get(cv2.CAP_PROP_FPS)
        total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        duration = total_frames / fps if fps > 0 else 0.0
        return {
            "fps": fps,
            "total_frames": total_frames,
            "width": width,
            "height": height,
            "duration": duration,
            "duration_formatted": f"{int(duration // 60)}:{int(duration % 60):02d}",
        }

    def _extract_frames_sync(
        self,
        video_path: str,
        frames_per_second: float,
        window: TrimWindow,
    ) -> list[Frame]:
        logger.info(
            "Starting frame extraction from: %s (fps=%.2f, window=%s..%s)",
            video_path, frames_per_second, window.start_seconds, window.end_seconds,
        )

        cap = cv2.VideoCapture(video_path)
        try:
            if not cap.isOpened():
                raise FrameExtractionError(f"Cannot open video file: {video_path}")

            info = self._read_info(cap)
            source_fps = info["fps"]
            total_frames = info["total_frames"]
            if source_fps <= 0 or total_frames <= 0:
                raise FrameExtractionError(f"Video has no decodable frames: {video_path}")

            times = window.clamp(info["duration"]).sample_times(frames_per_second)
            if len(times) > self._max_frames:
                logger.warning(
                    "Reached max frames limit: %d (requested %d)", self._max_frames, len(times)
                )
                times = times[: self._max_frames]

            frames: list[Frame] = []
            for timestamp in times:
                target_frame = min(int(round(timestamp * source_fps)), total_frames - 1)
                cap.set(cv2.CAP_PROP_POS_FRAMES, target_frame)
                ret, image = cap.read()
                if not ret:
                    logger.warning(
                        "Failed to read frame at %.2fs (frame %d); stopping", timestamp, target_frame
                    )
                    break

                ok, buffer = cv2.imencode(
                    ".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, self._quality]
                )
                if not ok:
                    raise FrameExtractionError(f"Failed to encode frame at {timestamp:.2f}s")

                frames.append(
                    Frame(
                        id=len(frames),
                        image_data=buffer.tobytes(),
                        timestamp_seconds=timestamp,
                    )
                )
                logger.debug("Extracted frame %d at %.2fs", len(frames) - 1, timestamp)
        finally:
            cap.release()

        logger.info("Frame extraction completed: %d frames extracted", len(frames))
        return frames
