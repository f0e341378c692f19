"""
Video Domain Layer.

Contains pure business logic and domain models for video operations.
No external dependencies - only Python standard library and domain concepts.
"""

from .models import (
    RawGeometry,
    MediaKind,
    MediaTypes,
    VideoAsset,
    ShareLink,
    SharedVideo,
    EditResult,
    TrimWindow,
    NoTrim,
    FromStart,
    FromEnd,
    Both,
)
from .interfaces import ByteStorage, DurationProbe, TranscodeEngine, VideoStore, TokenGenerator
from . import errors

__all__ = [
    "RawGeometry",
    "MediaKind",
    "MediaTypes",
    "VideoAsset",
    "ShareLink",
    "SharedVideo",
    "EditResult",
    "TrimWindow",
    "NoTrim",
    "FromStart",
    "FromEnd",
    "Both",
    "ByteStorage",
    "DurationProbe",
    "TranscodeEngine",
    "VideoStore",
    "TokenGenerator",
    "errors",
]
