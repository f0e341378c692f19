"""
Video Editing Service.

Trims and merges stored videos. Every edit produces a new stored asset;
source bytes are only ever read.

Raw videos are cut on exact frame boundaries and their durations are
computed, never measured. Encoded videos are handed to the transcoding
engine and the produced file is re-probed, because container seeking is
not frame-accurate.
"""

import itertools
import logging
from pathlib import Path
from typing import List, Sequence

from ...core.logging_config import get_performance_logger
from ...core.timezone_utils import format_filename_timestamp
from ..domain.errors import EmptyInputError, GeometryMismatchError, InvalidRangeError, NotFoundError
from ..domain.frame_arithmetic import is_whole_frames, merge_raw, trim_raw
from ..domain.interfaces import ByteStorage, TranscodeEngine, VideoStore
from ..domain.models import MediaKind, MediaTypes, RawGeometry, TrimWindow, VideoAsset
from .duration_service import DurationEstimator


class FrameArithmeticEngine:
    """Application service for trim and merge"""

    def __init__(
        self,
        geometry: RawGeometry,
        storage: ByteStorage,
        store: VideoStore,
        estimator: DurationEstimator,
        transcoder: TranscodeEngine,
        media_types: MediaTypes,
        strict_geometry: bool = False
    ):
        self.geometry = geometry
        self.storage = storage
        self.store = store
        self.estimator = estimator
        self.transcoder = transcoder
        self.media_types = media_types
        self.strict_geometry = strict_geometry
        self.logger = logging.getLogger(__name__)
        self.performance_logger = get_performance_logger("editing")
        self._operation_ids = itertools.count(1)

    async def trim(self, video_id: int, window: TrimWindow) -> VideoAsset:
        """Trim a stored video into a new asset"""
        if window.is_empty:
            raise InvalidRangeError("Invalid trim parameters. Provide either trimStart or trimEnd")
        if window.start_seconds < 0 or window.end_seconds < 0:
            raise InvalidRangeError("Trim values must be positive numbers")

        source = await self._get_video(video_id)
        kind = self.media_types.classify(source.handle)
        operation = f"trim #{next(self._operation_ids)} of video {video_id}"

        self.performance_logger.start_timer(operation)
        try:
            if kind is MediaKind.RAW:
                asset = await self._trim_raw(source, window)
            else:
                asset = await self._trim_encoded(source, window)
        finally:
            self.performance_logger.end_timer(operation)

        self.logger.info(
            f"Trimmed video {video_id} ({source.duration_seconds:.3f}s) into video {asset.id} ({asset.duration_seconds:.3f}s)"
        )
        return asset

    async def merge(self, video_ids: Sequence[int]) -> VideoAsset:
        """Concatenate stored videos, in order, into a new asset"""
        if len(video_ids) < 2:
            raise EmptyInputError("At least two video IDs are required")

        sources = [await self.store.get_video(video_id) for video_id in video_ids]
        if any(source is None for source in sources):
            missing = [video_id for video_id, source in zip(video_ids, sources) if source is None]
            raise NotFoundError(f"One or more videos not found: {missing}")

        kinds = {self.media_types.classify(source.handle) for source in sources}
        if len(kinds) > 1:
            raise GeometryMismatchError("Cannot merge raw and encoded videos together")

        operation = f"merge #{next(self._operation_ids)} of videos {list(video_ids)}"
        self.performance_logger.start_timer(operation)
        try:
            if kinds == {MediaKind.RAW}:
                asset = await self._merge_raw(sources)
            else:
                asset = await self._merge_encoded(sources)
        finally:
            self.performance_logger.end_timer(operation)

        self.logger.info(f"Merged videos {list(video_ids)} into video {asset.id} ({asset.duration_seconds:.3f}s)")
        return asset

    async def _trim_raw(self, source: VideoAsset, window: TrimWindow) -> VideoAsset:
        """Cut whole frames out of a raw buffer"""
        buffer = await self.storage.read(source.handle)
        result = trim_raw(buffer, self.geometry, window)

        handle = self.storage.new_handle(source.extension)
        await self.storage.write(handle, result.data)

        return await self._record(
            self._derived_filename(source, "trimmed"), handle, result.size_bytes, result.duration_seconds
        )

    async def _trim_encoded(self, source: VideoAsset, window: TrimWindow) -> VideoAsset:
        """Delegate the trim to the transcoder and measure what it produced"""
        start = float(window.start_seconds) or None
        end = float(window.end_seconds) or None

        handle = await self.transcoder.trim(source.handle, start_seconds=start, end_seconds=end)
        return await self._record_encoded(self._derived_filename(source, "trimmed"), handle)

    async def _merge_raw(self, sources: List[VideoAsset]) -> VideoAsset:
        """Byte-for-byte concatenation of raw buffers"""
        buffers = []
        for source in sources:
            buffer = await self.storage.read(source.handle)
            if self.strict_geometry and not is_whole_frames(len(buffer), self.geometry):
                raise GeometryMismatchError(
                    f"Video {source.id} is not a whole number of {self.geometry.width}x{self.geometry.height} frames"
                )
            buffers.append(buffer)

        result = merge_raw(buffers, self.geometry)

        handle = self.storage.new_handle(sources[0].extension)
        await self.storage.write(handle, result.data)

        return await self._record(self._merged_filename(sources[0]), handle, result.size_bytes, result.duration_seconds)

    async def _merge_encoded(self, sources: List[VideoAsset]) -> VideoAsset:
        """Delegate concatenation to the transcoder and measure what it produced"""
        handle = await self.transcoder.concat([source.handle for source in sources])
        return await self._record_encoded(self._merged_filename(sources[0]), handle)

    async def _record_encoded(self, filename: str, handle: str) -> VideoAsset:
        """Probe and record a transcoder output, removing it if that fails"""
        try:
            duration = await self.estimator.estimate_encoded(handle)
            size_bytes = await self.storage.size(handle)
        except Exception:
            await self._discard(handle)
            raise

        return await self._record(filename, handle, size_bytes, duration)

    async def _record(self, filename: str, handle: str, size_bytes: int, duration_seconds: float) -> VideoAsset:
        """Record a derivative; its blob is removed if recording fails"""
        try:
            return await self.store.insert_video(filename, handle, size_bytes, duration_seconds)
        except Exception:
            self.logger.error(f"Could not record {handle}, removing orphaned file")
            await self._discard(handle)
            raise

    async def _discard(self, handle: str) -> None:
        """Best-effort removal of an unrecorded derivative"""
        try:
            await self.storage.delete(handle)
        except OSError as e:
            self.logger.warning(f"Could not remove orphaned file {handle}: {e}")

    async def _get_video(self, video_id: int) -> VideoAsset:
        video = await self.store.get_video(video_id)
        if video is None:
            raise NotFoundError("Video not found")
        return video

    @staticmethod
    def _derived_filename(source: VideoAsset, label: str) -> str:
        stem = Path(source.filename).stem
        return f"{stem}-{label}-{format_filename_timestamp()}{source.extension}"

    @staticmethod
    def _merged_filename(first: VideoAsset) -> str:
        return f"merged-{format_filename_timestamp()}{first.extension}"
