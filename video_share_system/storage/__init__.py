"""
Storage module for the Video Share System.

This module handles byte storage for uploaded and derived videos.
"""

from .manager import FileSystemByteStorage

__all__ = ["FileSystemByteStorage"]
