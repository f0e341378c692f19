"""
Video Domain Errors.

Typed failures raised by the editing, sharing and ingestion use cases.
Translation to transport-facing responses belongs to the calling layer.
"""


class VideoShareError(Exception):
    """Base class for all video share system failures"""


class InvalidRangeError(VideoShareError, ValueError):
    """Trim window is empty, negative or exceeds the available frames"""


class GeometryMismatchError(VideoShareError):
    """Merge inputs do not share the same frame layout"""


class EmptyInputError(VideoShareError):
    """Operation received no usable input (empty file, fewer than two merge inputs)"""


class NotFoundError(VideoShareError, LookupError):
    """Referenced video asset does not exist"""


class NotFoundOrExpiredError(VideoShareError, LookupError):
    """Share token is unknown or expired.

    The two cases are indistinguishable to callers.
    """


class ProbeError(VideoShareError):
    """External probe could not determine a duration"""


class TranscodeError(VideoShareError):
    """External transcoding engine failed"""


class StorageError(VideoShareError, OSError):
    """Byte storage read/write/size/delete failure"""


class UniqueConstraintViolation(VideoShareError):
    """A share token collided with an existing one"""


class UnsupportedFormatError(VideoShareError):
    """File type is neither a known raw nor a known encoded format"""


class DurationLimitExceededError(VideoShareError):
    """Ingested video is longer than the configured maximum"""

    def __init__(self, duration_seconds: float, max_duration_seconds: float):
        super().__init__(
            f"Video duration {duration_seconds:.3f}s exceeds maximum allowed length of {max_duration_seconds:.0f}s"
        )
        self.duration_seconds = duration_seconds
        self.max_duration_seconds = max_duration_seconds
