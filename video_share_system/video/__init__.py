"""
Video Module for the Video Share System.

This module provides raw-video trimming and merging, duration estimation
and share links, following clean architecture principles.
"""

from .domain.models import RawGeometry, VideoAsset, ShareLink, TrimWindow

__all__ = ["RawGeometry", "VideoAsset", "ShareLink", "TrimWindow"]
