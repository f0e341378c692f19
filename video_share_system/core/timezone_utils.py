"""
Timezone utilities for the Video Share System.

Share link expiry is computed and compared in UTC; the configured timezone
is only used for human-facing timestamps.
"""

import datetime
import pytz
import logging
from typing import Optional


class TimezoneManager:
    """Manages timezone-aware datetime operations"""

    def __init__(self, timezone_name: str = "UTC"):
        self.timezone_name = timezone_name
        self.timezone = pytz.timezone(timezone_name)
        self.logger = logging.getLogger(__name__)
        self.logger.debug(f"Timezone manager initialized for {timezone_name}")

    def now(self) -> datetime.datetime:
        """Get current time in the configured timezone"""
        return datetime.datetime.now(self.timezone)

    def utc_now(self) -> datetime.datetime:
        """Get current UTC time"""
        return datetime.datetime.now(pytz.UTC)

    def to_local(self, dt: datetime.datetime) -> datetime.datetime:
        """Convert datetime to local timezone"""
        if dt.tzinfo is None:
            # Assume UTC if no timezone info
            dt = pytz.UTC.localize(dt)
        return dt.astimezone(self.timezone)

    def to_utc(self, dt: datetime.datetime) -> datetime.datetime:
        """Convert datetime to UTC"""
        if dt.tzinfo is None:
            # Assume local timezone if no timezone info
            dt = self.timezone.localize(dt)
        return dt.astimezone(pytz.UTC)

    def format_timestamp(self, dt: Optional[datetime.datetime] = None,
                         include_timezone: bool = True) -> str:
        """Format datetime as timestamp string in the configured timezone"""
        if dt is None:
            dt = self.now()

        dt = self.to_local(dt)

        if include_timezone:
            return dt.strftime("%Y-%m-%d %H:%M:%S %Z")
        else:
            return dt.strftime("%Y-%m-%d %H:%M:%S")

    def format_filename_timestamp(self, dt: Optional[datetime.datetime] = None) -> str:
        """Format datetime for use in filenames (no special characters)"""
        if dt is None:
            dt = self.now()

        return self.to_local(dt).strftime("%Y%m%d_%H%M%S")


# Default manager; UTC keeps stored timestamps comparable
utc_tz = TimezoneManager("UTC")


def utc_now() -> datetime.datetime:
    """Get current aware UTC time"""
    return utc_tz.utc_now()


def format_filename_timestamp(dt: Optional[datetime.datetime] = None) -> str:
    """Format timestamp for filenames"""
    return utc_tz.format_filename_timestamp(dt)
