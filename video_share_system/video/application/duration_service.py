"""
Duration Estimation Service.

Raw buffers get their duration from size and frame geometry; encoded
containers are probed by the external toolkit.
"""

import logging
from typing import Optional

from ..domain.frame_arithmetic import estimate_raw
from ..domain.interfaces import ByteStorage, DurationProbe
from ..domain.models import MediaKind, RawGeometry


class DurationEstimator:
    """Derives video durations for ingestion and editing"""

    def __init__(self, geometry: RawGeometry, storage: ByteStorage, probe: DurationProbe):
        self.geometry = geometry
        self.storage = storage
        self.probe = probe
        self.logger = logging.getLogger(__name__)

    def estimate_raw(self, size_bytes: int, geometry: Optional[RawGeometry] = None) -> float:
        """Duration of ``size_bytes`` of raw video; exact, no rounding"""
        return estimate_raw(size_bytes, geometry or self.geometry)

    async def estimate_encoded(self, handle: str) -> float:
        """Duration of an encoded video as reported by the probe"""
        duration = await self.probe.probe(handle)
        self.logger.debug(f"Probed duration of {handle}: {duration:.3f}s")
        return duration

    async def estimate(self, handle: str, kind: MediaKind) -> float:
        """Duration of a stored video of either kind"""
        if kind is MediaKind.RAW:
            size_bytes = await self.storage.size(handle)
            return self.estimate_raw(size_bytes)
        return await self.estimate_encoded(handle)
