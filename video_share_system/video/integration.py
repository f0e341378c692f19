"""
Video Module Integration.

Composition root for the video module: creates the infrastructure
implementations and wires them into the application services.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..core.config import Config
from ..core.timezone_utils import TimezoneManager
from ..storage.manager import FileSystemByteStorage

# Domain interfaces
from .domain.interfaces import ByteStorage, DurationProbe, TokenGenerator, TranscodeEngine, VideoStore
from .domain.models import MediaTypes

# Infrastructure implementations
from .infrastructure.persistence import SQLiteVideoStore
from .infrastructure.probes import OpenCVDurationProbe
from .infrastructure.tokens import SecureTokenGenerator
from .infrastructure.transcoders import FFmpegTranscodeEngine

# Application services
from .application.duration_service import DurationEstimator
from .application.editing_service import FrameArithmeticEngine
from .application.ingest_service import IngestService
from .application.share_service import ShareTokenIssuer


class VideoModule:
    """
    Main video module that provides dependency injection and service composition.

    Collaborators can be passed in to replace the default implementations;
    the store's connection is owned by ``start()``/``stop()``.
    """

    def __init__(
        self,
        config: Config,
        storage: Optional[ByteStorage] = None,
        store: Optional[VideoStore] = None,
        probe: Optional[DurationProbe] = None,
        transcoder: Optional[TranscodeEngine] = None,
        token_generator: Optional[TokenGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.timezone_manager = TimezoneManager(config.system.timezone)
        self.clock = clock or self.timezone_manager.utc_now

        # Infrastructure layer
        self.storage = storage or FileSystemByteStorage(config.storage)
        self.store = store or SQLiteVideoStore(config.database.path, clock=self.clock)
        self.probe = probe or OpenCVDurationProbe(self.storage)
        self.transcoder = transcoder or FFmpegTranscodeEngine(self.storage, self.probe)
        self.token_generator = token_generator or SecureTokenGenerator(config.share.token_bytes)

        self._initialize_services()
        self.running = False

        self.logger.info("Video module initialized successfully")

    def _initialize_services(self) -> None:
        """Initialize application services with their dependencies"""
        geometry = self.config.get_raw_geometry()
        media_types = MediaTypes(
            raw_extensions=tuple(self.config.ingest.raw_extensions),
            encoded_extensions=tuple(self.config.ingest.encoded_extensions),
        )

        self.duration_estimator = DurationEstimator(geometry=geometry, storage=self.storage, probe=self.probe)

        self.editing_service = FrameArithmeticEngine(
            geometry=geometry,
            storage=self.storage,
            store=self.store,
            estimator=self.duration_estimator,
            transcoder=self.transcoder,
            media_types=media_types,
            strict_geometry=self.config.ingest.strict_geometry,
        )

        self.share_service = ShareTokenIssuer(
            store=self.store,
            storage=self.storage,
            token_generator=self.token_generator,
            share_config=self.config.share,
            clock=self.clock,
        )

        self.ingest_service = IngestService(
            storage=self.storage,
            store=self.store,
            estimator=self.duration_estimator,
            media_types=media_types,
            ingest_config=self.config.ingest,
        )

    async def start(self) -> None:
        """Open the video store"""
        if self.running:
            return
        await self.store.connect()
        self.running = True
        self.logger.info("Video module started")

    async def stop(self) -> None:
        """Close the video store"""
        if not self.running:
            return
        await self.store.close()
        self.running = False
        self.logger.info("Video module stopped")

    async def __aenter__(self) -> "VideoModule":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def get_module_status(self) -> dict:
        """Get status information about the video module"""
        geometry = self.config.geometry
        return {
            "running": self.running,
            "storage": type(self.storage).__name__,
            "store": type(self.store).__name__,
            "probe": type(self.probe).__name__,
            "transcoder": type(self.transcoder).__name__,
            "token_generator": type(self.token_generator).__name__,
            "geometry": f"{geometry.width}x{geometry.height}x{geometry.bytes_per_pixel}@{geometry.frame_rate}",
            "strict_geometry": self.config.ingest.strict_geometry,
            "max_duration_seconds": self.config.ingest.max_duration_seconds,
        }
