"""
Raw Frame Arithmetic.

Converts between byte offsets and time for headerless raw video buffers.
Everything here is computed with exact rationals; rounding only happens
when a frame index is floored or a duration is handed out as a float.
"""

import math
from fractions import Fraction
from typing import Sequence, Tuple

from .errors import InvalidRangeError
from .models import EditResult, RawGeometry, Seconds, TrimWindow, exact


def raw_duration(size_bytes: int, geometry: RawGeometry) -> Fraction:
    """Exact duration in seconds of ``size_bytes`` of raw video"""
    if size_bytes < 0:
        raise ValueError("Size cannot be negative")
    return Fraction(size_bytes) / geometry.bytes_per_second


def estimate_raw(size_bytes: int, geometry: RawGeometry) -> float:
    """Duration in seconds derived from buffer size and geometry.

    A zero-byte buffer has duration 0.
    """
    return float(raw_duration(size_bytes, geometry))


def total_frames(size_bytes: int, geometry: RawGeometry) -> int:
    """Number of whole frames in a buffer; a trailing partial frame is ignored"""
    return size_bytes // geometry.frame_size_bytes


def seconds_to_frames(seconds: Seconds, geometry: RawGeometry) -> int:
    """Whole frames covered by ``seconds`` (floored)"""
    return math.floor(exact(seconds) * geometry.fps)


def frame_range(size_bytes: int, geometry: RawGeometry, window: TrimWindow) -> Tuple[int, int]:
    """Resolve a trim window to ``(start_frame, end_frame)``.

    Requests that exceed the available duration are rejected, never clamped.
    """
    frames = total_frames(size_bytes, geometry)
    start_frame = seconds_to_frames(window.start_seconds, geometry)
    end_frame = frames - seconds_to_frames(window.end_seconds, geometry)

    if not 0 <= start_frame < end_frame <= frames:
        raise InvalidRangeError(
            f"Trim window leaves no frames: start frame {start_frame}, end frame {end_frame}, "
            f"{frames} frames available"
        )

    return start_frame, end_frame


def trim_raw(buffer: bytes, geometry: RawGeometry, window: TrimWindow) -> EditResult:
    """Copy the frames selected by ``window`` out of a raw buffer"""
    start_frame, end_frame = frame_range(len(buffer), geometry, window)

    frame_size = geometry.frame_size_bytes
    data = bytes(buffer[start_frame * frame_size:end_frame * frame_size])
    duration = Fraction(end_frame - start_frame) / geometry.fps

    return EditResult(data=data, duration_seconds=float(duration))


def merge_raw(buffers: Sequence[bytes], geometry: RawGeometry) -> EditResult:
    """Concatenate raw buffers in order.

    The duration is the sum of the per-input durations rather than one
    derived from the combined size.
    """
    data = b"".join(buffers)
    duration = sum((raw_duration(len(buffer), geometry) for buffer in buffers), Fraction(0))
    return EditResult(data=data, duration_seconds=float(duration))


def is_whole_frames(size_bytes: int, geometry: RawGeometry) -> bool:
    """Check that a buffer holds an exact number of frames"""
    return size_bytes % geometry.frame_size_bytes == 0
