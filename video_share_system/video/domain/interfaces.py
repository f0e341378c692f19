"""
Video Domain Interfaces.

Abstract interfaces that define contracts for the collaborators the editing
and sharing use cases depend on. Implementations live in the infrastructure
layer and are injected by the composition root.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .models import ShareLink, VideoAsset


class ByteStorage(ABC):
    """Named byte blob storage. Every method raises StorageError on failure."""

    @abstractmethod
    async def read(self, handle: str) -> bytes:
        """Read the whole blob"""
        pass

    @abstractmethod
    async def write(self, handle: str, data: bytes) -> None:
        """Write a blob atomically"""
        pass

    @abstractmethod
    async def import_file(self, source_path: Path, handle: str) -> int:
        """Copy an external file into storage; returns bytes stored"""
        pass

    @abstractmethod
    async def size(self, handle: str) -> int:
        """Blob size in bytes"""
        pass

    @abstractmethod
    async def delete(self, handle: str) -> None:
        """Remove a blob"""
        pass

    @abstractmethod
    async def exists(self, handle: str) -> bool:
        """Check if a blob exists"""
        pass

    @abstractmethod
    def new_handle(self, suffix: str = "") -> str:
        """Generate a fresh, unused handle"""
        pass

    @abstractmethod
    def path_for(self, handle: str) -> Path:
        """Filesystem path of a blob, for external tools"""
        pass


class DurationProbe(ABC):
    """External probe for container-encoded media"""

    @abstractmethod
    async def probe(self, handle: str) -> float:
        """Get duration in seconds; raises ProbeError"""
        pass


class TranscodeEngine(ABC):
    """External transcoding toolkit for container-encoded media"""

    @abstractmethod
    async def trim(
        self,
        handle: str,
        start_seconds: Optional[float] = None,
        end_seconds: Optional[float] = None
    ) -> str:
        """Trim into a fresh handle; raises TranscodeError"""
        pass

    @abstractmethod
    async def concat(self, handles: List[str]) -> str:
        """Concatenate into a fresh handle; raises TranscodeError"""
        pass


class VideoStore(ABC):
    """Durable record of video assets and share links"""

    @abstractmethod
    async def connect(self) -> None:
        """Open the store and ensure its schema"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the store"""
        pass

    @abstractmethod
    async def insert_video(self, filename: str, handle: str, size_bytes: int, duration_seconds: float) -> VideoAsset:
        """Record a new video asset"""
        pass

    @abstractmethod
    async def get_video(self, video_id: int) -> Optional[VideoAsset]:
        """Get video asset by ID"""
        pass

    @abstractmethod
    async def list_videos(self, limit: Optional[int] = None) -> List[VideoAsset]:
        """List video assets, newest first"""
        pass

    @abstractmethod
    async def insert_share_link(self, video_id: int, token: str, expires_at: datetime) -> ShareLink:
        """Record a share link; raises UniqueConstraintViolation on token collision"""
        pass

    @abstractmethod
    async def find_active_share_link(self, token: str, now: datetime) -> Optional[Tuple[ShareLink, VideoAsset]]:
        """Get the link with ``token`` expiring strictly after ``now``, joined to its video"""
        pass


class TokenGenerator(ABC):
    """Source of opaque share tokens"""

    @abstractmethod
    def generate(self) -> str:
        """Produce a new token"""
        pass
