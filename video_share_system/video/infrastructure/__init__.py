"""
Video Infrastructure Layer.

Contains implementations of domain interfaces using external dependencies
like SQLite, FFmpeg, OpenCV, etc.
"""

from .persistence import SQLiteVideoStore
from .probes import OpenCVDurationProbe
from .transcoders import FFmpegTranscodeEngine
from .tokens import SecureTokenGenerator

__all__ = [
    "SQLiteVideoStore",
    "OpenCVDurationProbe",
    "FFmpegTranscodeEngine",
    "SecureTokenGenerator",
]
