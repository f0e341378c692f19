"""
Synthetic Raw Video.

Writes solid-colour raw clips for fixtures, demos and smoke tests.
"""

import logging
from pathlib import Path
from typing import Sequence, Union

import numpy as np

from ..domain.frame_arithmetic import seconds_to_frames
from ..domain.models import RawGeometry, Seconds


COLORS = {
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
    "black": (0, 0, 0),
    "white": (255, 255, 255),
}

logger = logging.getLogger(__name__)


def solid_frame(geometry: RawGeometry, color: Union[str, Sequence[int]] = "red") -> np.ndarray:
    """Build one frame filled with ``color``"""
    rgb = COLORS[color] if isinstance(color, str) else tuple(color)
    if len(rgb) != geometry.bytes_per_pixel:
        raise ValueError(f"Color needs {geometry.bytes_per_pixel} channels, got {len(rgb)}")

    return np.full((geometry.height, geometry.width, geometry.bytes_per_pixel), rgb, dtype=np.uint8)


def raw_video_bytes(duration_seconds: Seconds, geometry: RawGeometry, color: Union[str, Sequence[int]] = "red") -> bytes:
    """Raw buffer holding ``duration_seconds`` of a solid colour"""
    frame = solid_frame(geometry, color).tobytes()
    return frame * seconds_to_frames(duration_seconds, geometry)


def write_raw_video(
    output_path: Path,
    duration_seconds: Seconds,
    geometry: RawGeometry,
    color: Union[str, Sequence[int]] = "red"
) -> int:
    """Write a solid-colour raw clip frame by frame; returns bytes written"""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    frame = solid_frame(geometry, color).tobytes()
    frames = seconds_to_frames(duration_seconds, geometry)

    with open(output_path, "wb") as f:
        for _ in range(frames):
            f.write(frame)

    written = frames * len(frame)
    logger.info(f"Wrote {frames} frames ({written} bytes) to {output_path}")
    return written
