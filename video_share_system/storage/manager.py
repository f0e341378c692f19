"""
Storage Manager for the Video Share System.

File system implementation of byte storage. Handles are plain filenames
inside the configured base directory; every derivative gets a fresh handle
so stored bytes are never overwritten.
"""

import os
import uuid
import logging
from typing import Any, Dict
from pathlib import Path

import aiofiles
import aiofiles.os

from ..core.config import StorageConfig
from ..core.timezone_utils import format_filename_timestamp
from ..video.domain.errors import StorageError
from ..video.domain.interfaces import ByteStorage


CHUNK_SIZE = 1024 * 1024


class FileSystemByteStorage(ByteStorage):
    """Stores video blobs as files under a base directory"""

    def __init__(self, storage_config: StorageConfig):
        self.storage_config = storage_config
        self.base_path = Path(storage_config.base_path)
        self.logger = logging.getLogger(__name__)

        self._ensure_storage_structure()

    def _ensure_storage_structure(self) -> None:
        """Ensure storage directory exists"""
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            self.logger.debug(f"Ensured storage directory: {self.base_path}")
        except OSError as e:
            self.logger.error(f"Error creating storage structure: {e}")
            raise StorageError(f"Cannot create storage directory {self.base_path}: {e}") from e

    def new_handle(self, suffix: str = "") -> str:
        """Generate a fresh handle, e.g. ``20240101_120000-1a2b3c4d5e6f.raw``"""
        return f"{format_filename_timestamp()}-{uuid.uuid4().hex[:12]}{suffix}"

    def path_for(self, handle: str) -> Path:
        """Resolve a handle to its file path"""
        if not handle or Path(handle).name != handle or handle in (".", ".."):
            raise StorageError(f"Invalid storage handle: {handle!r}")
        return self.base_path / handle

    async def read(self, handle: str) -> bytes:
        """Read the whole blob"""
        path = self.path_for(handle)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            self.logger.error(f"Error reading {handle}: {e}")
            raise StorageError(f"Cannot read {handle}: {e}") from e

    async def write(self, handle: str, data: bytes) -> None:
        """Write a blob via a temporary file and an atomic rename"""
        path = self.path_for(handle)
        temp_path = path.with_name(f".{path.name}.part")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(temp_path, path)
            self.logger.debug(f"Wrote {len(data)} bytes to {handle}")
        except OSError as e:
            self.logger.error(f"Error writing {handle}: {e}")
            await self._discard(temp_path)
            raise StorageError(f"Cannot write {handle}: {e}") from e

    async def import_file(self, source_path: Path, handle: str) -> int:
        """Copy an external file into storage, enforcing the size limit.

        Returns the number of bytes stored.
        """
        path = self.path_for(handle)
        temp_path = path.with_name(f".{path.name}.part")
        max_bytes = self.storage_config.max_file_size_mb * 1024 * 1024
        copied = 0
        try:
            async with aiofiles.open(source_path, "rb") as src, aiofiles.open(temp_path, "wb") as dst:
                while True:
                    chunk = await src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    copied += len(chunk)
                    if copied > max_bytes:
                        raise StorageError(
                            f"{source_path} exceeds the {self.storage_config.max_file_size_mb} MB upload limit"
                        )
                    await dst.write(chunk)
            await aiofiles.os.replace(temp_path, path)
        except StorageError:
            await self._discard(temp_path)
            raise
        except OSError as e:
            self.logger.error(f"Error importing {source_path} as {handle}: {e}")
            await self._discard(temp_path)
            raise StorageError(f"Cannot import {source_path}: {e}") from e

        self.logger.info(f"Imported {source_path} as {handle} ({copied} bytes)")
        return copied

    async def size(self, handle: str) -> int:
        """Blob size in bytes"""
        try:
            stat = await aiofiles.os.stat(self.path_for(handle))
            return stat.st_size
        except OSError as e:
            raise StorageError(f"Cannot stat {handle}: {e}") from e

    async def delete(self, handle: str) -> None:
        """Remove a blob"""
        try:
            await aiofiles.os.remove(self.path_for(handle))
            self.logger.info(f"Deleted {handle}")
        except OSError as e:
            self.logger.error(f"Error deleting {handle}: {e}")
            raise StorageError(f"Cannot delete {handle}: {e}") from e

    async def exists(self, handle: str) -> bool:
        """Check if a blob exists"""
        return await aiofiles.os.path.exists(self.path_for(handle))

    async def _discard(self, path: Path) -> None:
        """Remove a leftover temporary file"""
        try:
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
        except OSError as e:
            self.logger.warning(f"Could not remove temporary file {path}: {e}")

    def get_storage_statistics(self) -> Dict[str, Any]:
        """Get storage usage statistics"""
        total_files = 0
        total_size = 0
        for entry in os.scandir(self.base_path):
            if entry.is_file() and not entry.name.startswith("."):
                total_files += 1
                total_size += entry.stat().st_size

        return {
            "base_path": str(self.base_path),
            "total_files": total_files,
            "total_size_bytes": total_size,
            "max_file_size_mb": self.storage_config.max_file_size_mb,
        }
