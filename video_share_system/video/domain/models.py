"""
Video Domain Models.

Pure business entities and value objects for video operations.
These models contain no external dependencies and represent core business concepts.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from fractions import Fraction
from pathlib import Path
from typing import Iterable, Optional, Union
from enum import Enum

from .errors import InvalidRangeError, UnsupportedFormatError


Seconds = Union[int, float, Fraction]


def exact(value: Seconds) -> Fraction:
    """Convert a number of seconds (or frames per second) to an exact rational.

    Floats are read by their shortest decimal representation, so ``0.7``
    becomes ``7/10`` rather than the nearest binary double.
    """
    if isinstance(value, Fraction):
        return value
    if not math.isfinite(value):
        raise InvalidRangeError(f"Seconds must be a finite number, got {value!r}")
    if isinstance(value, float):
        return Fraction(repr(value))
    return Fraction(value)


class MediaKind(Enum):
    """How a stored asset's bytes are laid out"""
    RAW = "raw"          # Headerless fixed-geometry frames
    ENCODED = "encoded"  # Container format handled by the external toolkit


CONTENT_TYPES = {
    ".raw": "video/raw",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
}


@dataclass(frozen=True)
class RawGeometry:
    """Frame layout of a raw video buffer"""
    width: int
    height: int
    bytes_per_pixel: int
    frame_rate: Seconds

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0 or self.bytes_per_pixel <= 0:
            raise ValueError("Frame dimensions must be positive")
        if exact(self.frame_rate) <= 0:
            raise ValueError("Frame rate must be positive")

    @property
    def frame_size_bytes(self) -> int:
        """Bytes in one frame"""
        return self.width * self.height * self.bytes_per_pixel

    @property
    def fps(self) -> Fraction:
        """Frame rate as an exact rational"""
        return exact(self.frame_rate)

    @property
    def bytes_per_second(self) -> Fraction:
        """Bytes of raw data per second of video"""
        return self.frame_size_bytes * self.fps


@dataclass(frozen=True)
class MediaTypes:
    """File extension policy for raw and encoded media"""
    raw_extensions: Iterable[str] = (".raw",)
    encoded_extensions: Iterable[str] = (".mp4", ".mov")

    def classify(self, filename: str) -> MediaKind:
        """Classify a file by extension"""
        extension = Path(filename).suffix.lower()
        if extension in {ext.lower() for ext in self.raw_extensions}:
            return MediaKind.RAW
        if extension in {ext.lower() for ext in self.encoded_extensions}:
            return MediaKind.ENCODED
        raise UnsupportedFormatError(f"Invalid file type {extension or '(none)'!r}. Only video files are allowed")


@dataclass(frozen=True)
class VideoAsset:
    """Stored video entity; never mutated once recorded"""
    id: int
    filename: str
    handle: str
    size_bytes: int
    duration_seconds: float
    created_at: datetime

    def __post_init__(self):
        if self.size_bytes < 0:
            raise ValueError("File size cannot be negative")
        if self.duration_seconds < 0:
            raise ValueError("Duration cannot be negative")

    @property
    def extension(self) -> str:
        return Path(self.handle).suffix.lower()

    @property
    def content_type(self) -> str:
        """MIME type used when serving the asset"""
        return CONTENT_TYPES.get(self.extension, "application/octet-stream")


@dataclass(frozen=True)
class ShareLink:
    """Time-limited anonymous access grant to a video asset"""
    id: int
    video_id: int
    token: str
    expires_at: datetime
    created_at: datetime

    def is_active(self, now: datetime) -> bool:
        """A link is usable strictly before its expiry instant"""
        return self.expires_at > now


@dataclass(frozen=True)
class SharedVideo:
    """Result of resolving a share token"""
    asset: VideoAsset
    share_link: ShareLink

    @property
    def content_type(self) -> str:
        return self.asset.content_type

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.asset.filename}"'


@dataclass(frozen=True)
class EditResult:
    """Bytes and exact duration produced by a raw trim or merge"""
    data: bytes
    duration_seconds: float

    @property
    def size_bytes(self) -> int:
        return len(self.data)


# Trim window: a tagged option instead of a loose options bag

@dataclass(frozen=True)
class TrimWindow:
    """Base of the trim window variants"""

    @property
    def start_seconds(self) -> Seconds:
        return 0

    @property
    def end_seconds(self) -> Seconds:
        return 0

    @property
    def is_empty(self) -> bool:
        """True when the window trims nothing"""
        return exact(self.start_seconds) == 0 and exact(self.end_seconds) == 0

    @staticmethod
    def from_values(trim_start: Optional[Seconds] = None, trim_end: Optional[Seconds] = None) -> 'TrimWindow':
        """Build the matching variant from optional start/end seconds"""
        for value in (trim_start, trim_end):
            if value is None:
                continue
            if not math.isfinite(value):
                raise InvalidRangeError("Trim values must be finite numbers")
            if value < 0:
                raise InvalidRangeError("Trim values must be positive numbers")

        if trim_start and trim_end:
            return Both(trim_start, trim_end)
        if trim_start:
            return FromStart(trim_start)
        if trim_end:
            return FromEnd(trim_end)
        return NoTrim()


@dataclass(frozen=True)
class NoTrim(TrimWindow):
    """Keep every frame"""


@dataclass(frozen=True)
class FromStart(TrimWindow):
    """Drop the first ``seconds`` of video"""
    seconds: Seconds

    @property
    def start_seconds(self) -> Seconds:
        return self.seconds


@dataclass(frozen=True)
class FromEnd(TrimWindow):
    """Drop the last ``seconds`` of video"""
    seconds: Seconds

    @property
    def end_seconds(self) -> Seconds:
        return self.seconds


@dataclass(frozen=True)
class Both(TrimWindow):
    """Drop ``start`` seconds from the front and ``end`` seconds from the back"""
    start: Seconds
    end: Seconds

    @property
    def start_seconds(self) -> Seconds:
        return self.start

    @property
    def end_seconds(self) -> Seconds:
        return self.end
