"""
Video Duration Probes.

Duration probing for container-encoded media using OpenCV.
"""

import asyncio
import logging
from pathlib import Path

import cv2

from ..domain.errors import ProbeError
from ..domain.interfaces import ByteStorage, DurationProbe


class OpenCVDurationProbe(DurationProbe):
    """OpenCV-based duration probe"""

    def __init__(self, storage: ByteStorage):
        self.storage = storage
        self.logger = logging.getLogger(__name__)

    async def probe(self, handle: str) -> float:
        """Get duration in seconds of an encoded video"""
        file_path = self.storage.path_for(handle)
        # Run OpenCV operations in thread pool to avoid blocking
        return await asyncio.get_running_loop().run_in_executor(
            None, self._probe_sync, file_path
        )

    def _probe_sync(self, file_path: Path) -> float:
        """Synchronous duration probe"""
        if not file_path.exists():
            raise ProbeError(f"Video file not found: {file_path}")

        cap = cv2.VideoCapture(str(file_path))
        try:
            if not cap.isOpened():
                self.logger.warning(f"Could not open video file: {file_path}")
                raise ProbeError(f"Could not open video file: {file_path}")

            fps = cap.get(cv2.CAP_PROP_FPS)
            frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))

            if fps <= 0 or frame_count < 0:
                raise ProbeError(f"Could not determine duration of {file_path} (fps={fps}, frames={frame_count})")

            duration_seconds = frame_count / fps
            self.logger.debug(f"Probed {file_path}: {frame_count} frames at {fps:.3f} fps = {duration_seconds:.3f}s")
            return duration_seconds

        finally:
            cap.release()
