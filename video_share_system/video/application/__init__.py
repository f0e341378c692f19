"""
Video Application Layer.

Contains use cases and application services that orchestrate domain logic
and coordinate between domain and infrastructure layers.
"""

from .duration_service import DurationEstimator
from .editing_service import FrameArithmeticEngine
from .share_service import ShareTokenIssuer
from .ingest_service import IngestService

__all__ = [
    "DurationEstimator",
    "FrameArithmeticEngine",
    "ShareTokenIssuer",
    "IngestService",
]
