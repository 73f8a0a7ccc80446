"""Unit tests for the OpenCV frame extractor against a synthetic video."""
from __future__ import annotations

import cv2
import numpy as np
import pytest

from backend.src.adapters.outbound.media.opencv_frames import OpenCVFrameExtractor
from backend.src.core.exceptions import FrameExtractionError
from backend.src.core.value_objects.trim_window import TrimWindow

SOURCE_FPS = 10
DURATION_SECONDS = 10


@pytest.fixture(scope="module")
def synthetic_video(tmp_path_factory):
    """10 s MJPG clip at 10 fps whose brightness encodes the second."""
    path = tmp_path_factory.mktemp("video") / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), SOURCE_FPS, (64, 48))
    for i in range(SOURCE_FPS * DURATION_SECONDS):
        frame = np.full((48, 64, 3), (i // SOURCE_FPS) * 20, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return str(path)


class TestOpenCVFrameExtractor:
    @pytest.mark.asyncio
    async def test_one_frame_per_second(self, synthetic_video):
        frames = await OpenCVFrameExtractor().extract_frames(synthetic_video, 1.0, TrimWindow())

        assert len(frames) == 10
        assert [f.id for f in frames] == list(range(10))
        assert [f.timestamp_seconds for f in frames] == [float(i) for i in range(10)]
        assert all(f.mime_type == "image/jpeg" for f in frames)
        assert frames[0].image_data[:2] == b"\xff\xd8"

    @pytest.mark.asyncio
    async def test_trim_window(self, synthetic_video):
        frames = await OpenCVFrameExtractor().extract_frames(
            synthetic_video, 2.0, TrimWindow(3.0, 5.0)
        )

        assert [f.timestamp_seconds for f in frames] == [3.0, 3.5, 4.0, 4.5]
        assert [f.id for f in frames] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_decoded_frames_match_their_timestamps(self, synthetic_video):
        frames = await OpenCVFrameExtractor().extract_frames(
            synthetic_video, 1.0, TrimWindow(2.0, 4.0)
        )

        brightness = [
            int(cv2.imdecode(np.frombuffer(f.image_data, np.uint8), cv2.IMREAD_GRAYSCALE).mean())
            for f in frames
        ]
        assert abs(brightness[0] - 40) <= 4
        assert abs(brightness[1] - 60) <= 4

    @pytest.mark.asyncio
    async def test_window_past_end_is_clamped(self, synthetic_video):
        frames = await OpenCVFrameExtractor().extract_frames(
            synthetic_video, 1.0, TrimWindow(8.0, 30.0)
        )
        assert [f.timestamp_seconds for f in frames] == [8.0, 9.0]

    @pytest.mark.asyncio
    async def test_zero_length_window(self, synthetic_video):
        frames = await OpenCVFrameExtractor().extract_frames(
            synthetic_video, 1.0, TrimWindow(4.0, 4.0)
        )
        assert frames == []

    @pytest.mark.asyncio
    async def test_max_frames_limit(self, synthetic_video):
        frames = await OpenCVFrameExtractor(max_frames=3).extract_frames(
            synthetic_video, 1.0, TrimWindow()
        )
        assert len(frames) == 3

    @pytest.mark.asyncio
    async def test_unreadable_file_raises(self, tmp_path):
        bogus = tmp_path / "not_a_video.mp4"
        bogus.write_bytes(b"definitely not a video")

        with pytest.raises(FrameExtractionError):
            await OpenCVFrameExtractor().extract_frames(str(bogus), 1.0, TrimWindow())

    def test_video_info(self, synthetic_video):
        info = OpenCVFrameExtractor().get_video_info(synthetic_video)
        assert info["width"] == 64
        assert info["height"] == 48
        assert info["duration"] == pytest.approx(10.0)
        assert info["duration_formatted"] == "0:10"
