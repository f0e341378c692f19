"""
Video Share System

Trims and merges fixed-geometry raw videos by exact frame arithmetic and
grants time-limited anonymous access to stored videos through share tokens.
"""

__version__ = "1.0.0"

from .main import VideoShareSystem

__all__ = ["VideoShareSystem"]
