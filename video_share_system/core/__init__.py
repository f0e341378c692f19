"""
Video Share System - Core Module

This module contains the core functionality for the video share system,
including configuration management, logging and time handling.
"""

from .config import Config
from .timezone_utils import TimezoneManager

__all__ = ["Config", "TimezoneManager"]
