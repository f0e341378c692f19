"""
Configuration management for the Video Share System.

This module handles all configuration settings including raw frame geometry,
storage paths, the metadata database, ingestion policy and share links.
"""

import json
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, asdict, field
from pathlib import Path

from ..video.domain.models import RawGeometry


@dataclass
class GeometryConfig:
    """Fixed geometry of raw (headerless) video buffers"""

    width: int = 320
    height: int = 240
    bytes_per_pixel: int = 3  # RGB24
    frame_rate: int = 30

    def to_geometry(self) -> RawGeometry:
        """Build the domain geometry value object"""
        return RawGeometry(width=self.width, height=self.height, bytes_per_pixel=self.bytes_per_pixel, frame_rate=self.frame_rate)


@dataclass
class StorageConfig:
    """Storage configuration"""

    base_path: str = "uploads"
    max_file_size_mb: int = 1024  # Max size per uploaded file


@dataclass
class DatabaseConfig:
    """Metadata database configuration"""

    path: str = "videos.db"


@dataclass
class IngestConfig:
    """Ingestion policy"""

    max_duration_seconds: float = 300.0  # 5 minutes
    raw_extensions: List[str] = field(default_factory=lambda: [".raw"])
    encoded_extensions: List[str] = field(default_factory=lambda: [".mp4", ".mov"])
    strict_geometry: bool = False  # Reject raw merge inputs that are not whole frames


@dataclass
class ShareConfig:
    """Share link configuration"""

    default_expiry_hours: float = 24.0
    token_bytes: int = 32
    token_retry_attempts: int = 3  # Fresh tokens tried after a collision
    base_url: str = "http://localhost:3000"


@dataclass
class SystemConfig:
    """System-wide configuration"""

    log_level: str = "INFO"
    log_file: Optional[str] = "video_share_system.log"
    timezone: str = "UTC"


class Config:
    """Main configuration manager"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or "config.json"
        self.logger = logging.getLogger(__name__)

        # Default configurations
        self.geometry = GeometryConfig()
        self.storage = StorageConfig()
        self.database = DatabaseConfig()
        self.ingest = IngestConfig()
        self.share = ShareConfig()
        self.system = SystemConfig()

        # Load configuration
        self.load_config()

        # Ensure storage directories exist
        self._ensure_storage_directories()

    def load_config(self) -> None:
        """Load configuration from file"""
        config_path = Path(self.config_file)

        if config_path.exists():
            try:
                with open(config_path, "r") as f:
                    config_data = json.load(f)

                if "geometry" in config_data:
                    self.geometry = GeometryConfig(**config_data["geometry"])

                if "storage" in config_data:
                    self.storage = StorageConfig(**config_data["storage"])

                if "database" in config_data:
                    self.database = DatabaseConfig(**config_data["database"])

                if "ingest" in config_data:
                    self.ingest = IngestConfig(**config_data["ingest"])

                if "share" in config_data:
                    self.share = ShareConfig(**config_data["share"])

                if "system" in config_data:
                    self.system = SystemConfig(**config_data["system"])

                self.logger.info(f"Configuration loaded from {config_path}")

            except (OSError, ValueError, TypeError) as e:
                self.logger.error(f"Error loading config from {config_path}: {e}")
        else:
            self.logger.info(f"Config file {config_path} not found, using defaults")
            self.save_config()  # Save default config

    def save_config(self) -> None:
        """Save current configuration to file"""
        try:
            with open(self.config_file, "w") as f:
                json.dump(self.to_dict(), f, indent=2)
            self.logger.info(f"Configuration saved to {self.config_file}")
        except OSError as e:
            self.logger.error(f"Error saving config to {self.config_file}: {e}")

    def _ensure_storage_directories(self) -> None:
        """Ensure the storage and database directories exist"""
        try:
            Path(self.storage.base_path).mkdir(parents=True, exist_ok=True)
            Path(self.database.path).parent.mkdir(parents=True, exist_ok=True)
            self.logger.info("Storage directories verified/created")
        except OSError as e:
            self.logger.error(f"Error creating storage directories: {e}")

    def get_raw_geometry(self) -> RawGeometry:
        """Get the configured raw frame geometry"""
        return self.geometry.to_geometry()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "geometry": asdict(self.geometry),
            "storage": asdict(self.storage),
            "database": asdict(self.database),
            "ingest": asdict(self.ingest),
            "share": asdict(self.share),
            "system": asdict(self.system),
        }
