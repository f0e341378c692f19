"""
Video Ingestion Service.

Brings an uploaded file into storage and records it once its duration is
known and within policy. A file that fails any check is removed again.
"""

import logging
from pathlib import Path
from typing import Optional

import aiofiles.os

from ...core.config import IngestConfig
from ...core.logging_config import get_performance_logger
from ..domain.errors import DurationLimitExceededError, EmptyInputError
from ..domain.interfaces import ByteStorage, VideoStore
from ..domain.models import MediaTypes, VideoAsset
from .duration_service import DurationEstimator


class IngestService:
    """Application service for video uploads"""

    def __init__(
        self,
        storage: ByteStorage,
        store: VideoStore,
        estimator: DurationEstimator,
        media_types: MediaTypes,
        ingest_config: IngestConfig
    ):
        self.storage = storage
        self.store = store
        self.estimator = estimator
        self.media_types = media_types
        self.ingest_config = ingest_config
        self.logger = logging.getLogger(__name__)
        self.performance_logger = get_performance_logger("ingest")

    async def ingest(self, source_path: Path, original_filename: Optional[str] = None) -> VideoAsset:
        """Store, measure and record an uploaded video"""
        source_path = Path(source_path)
        filename = original_filename or source_path.name
        kind = self.media_types.classify(filename)

        try:
            stat = await aiofiles.os.stat(source_path)
        except FileNotFoundError as e:
            raise EmptyInputError("No video file provided") from e
        if stat.st_size == 0:
            raise EmptyInputError("No video file provided")

        operation = f"ingest {filename}"
        self.performance_logger.start_timer(operation)
        try:
            handle = self.storage.new_handle(Path(filename).suffix.lower())
            size_bytes = await self.storage.import_file(source_path, handle)

            try:
                duration = await self.estimator.estimate(handle, kind)
                if duration > self.ingest_config.max_duration_seconds:
                    raise DurationLimitExceededError(duration, self.ingest_config.max_duration_seconds)

                asset = await self.store.insert_video(filename, handle, size_bytes, duration)
            except Exception:
                self.logger.warning(f"Rejecting upload {filename}, removing {handle}")
                await self._discard(handle)
                raise
        finally:
            self.performance_logger.end_timer(operation)

        self.logger.info(f"Ingested {filename} as video {asset.id} ({kind.value}, {size_bytes} bytes, {duration:.3f}s)")
        return asset

    async def _discard(self, handle: str) -> None:
        """Best-effort removal of a rejected upload"""
        try:
            await self.storage.delete(handle)
        except OSError as e:
            self.logger.warning(f"Could not remove rejected upload {handle}: {e}")
