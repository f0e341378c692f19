"""
Shared fixtures for the Video Share System tests.

External toolkits (FFmpeg, OpenCV) are replaced by in-process fakes and the
wall clock is pinned so expiry behaviour is deterministic.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
import pytz

from video_share_system.core.config import Config
from video_share_system.storage.manager import FileSystemByteStorage
from video_share_system.video.domain.errors import ProbeError
from video_share_system.video.domain.interfaces import ByteStorage, DurationProbe, TokenGenerator, TranscodeEngine
from video_share_system.video.domain.models import RawGeometry
from video_share_system.video.integration import VideoModule


# 4x2 RGB frames at 10 fps: 24 bytes per frame, 240 bytes per second
SMALL_GEOMETRY = {"width": 4, "height": 2, "bytes_per_pixel": 3, "frame_rate": 10}


class FrozenClock:
    """Wall clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class SequenceTokenGenerator(TokenGenerator):
    """Hands out tokens from a fixed list, then numbered fallbacks"""

    def __init__(self, tokens: Optional[List[str]] = None):
        self.tokens = list(tokens or [])
        self.issued = 0

    def generate(self) -> str:
        self.issued += 1
        if self.tokens:
            return self.tokens.pop(0)
        return f"token-{self.issued}"


class FakeProbe(DurationProbe):
    """Returns preset durations per handle; unknown handles fail"""

    def __init__(self):
        self.durations: Dict[str, float] = {}
        self.default: Optional[float] = None
        self.calls: List[str] = []

    async def probe(self, handle: str) -> float:
        self.calls.append(handle)
        if handle in self.durations:
            return self.durations[handle]
        if self.default is not None:
            return self.default
        raise ProbeError(f"Cannot probe {handle}")


class FakeTranscoder(TranscodeEngine):
    """Writes placeholder outputs and records what it was asked to do"""

    def __init__(self, storage: ByteStorage, probe: FakeProbe):
        self.storage = storage
        self.probe = probe
        self.output_duration = 3.0
        self.trim_calls: List[tuple] = []
        self.concat_calls: List[List[str]] = []

    async def trim(self, handle, start_seconds=None, end_seconds=None):
        self.trim_calls.append((handle, start_seconds, end_seconds))
        output = self.storage.new_handle(Path(handle).suffix)
        await self.storage.write(output, b"trimmed-container")
        self.probe.durations[output] = self.output_duration
        return output

    async def concat(self, handles):
        self.concat_calls.append(list(handles))
        output = self.storage.new_handle(Path(handles[0]).suffix)
        await self.storage.write(output, b"concatenated-container")
        self.probe.durations[output] = self.output_duration
        return output


def write_config(path: Path, tmp_path: Path, **sections) -> Path:
    """Write a config file whose paths all point inside ``tmp_path``"""
    data = {
        "geometry": dict(SMALL_GEOMETRY),
        "storage": {"base_path": str(tmp_path / "uploads"), "max_file_size_mb": 1},
        "database": {"path": str(tmp_path / "videos.db")},
        "system": {"log_level": "DEBUG", "log_file": None, "timezone": "UTC"},
    }
    for name, values in sections.items():
        data.setdefault(name, {}).update(values)
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def small_geometry() -> RawGeometry:
    return RawGeometry(**SMALL_GEOMETRY)


@pytest.fixture
def reference_geometry() -> RawGeometry:
    return RawGeometry(width=320, height=240, bytes_per_pixel=3, frame_rate=30)


@pytest.fixture
def config_file(tmp_path):
    """Write a config file with the given section overrides"""

    def build(**sections) -> Path:
        return write_config(tmp_path / "config.json", tmp_path, **sections)

    return build


@pytest.fixture
def config(config_file) -> Config:
    return Config(str(config_file()))


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(pytz.UTC.localize(datetime(2024, 3, 1, 12, 0, 0)))


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def tokens() -> SequenceTokenGenerator:
    return SequenceTokenGenerator()


@pytest_asyncio.fixture
async def module(config, probe, tokens, clock):
    storage = FileSystemByteStorage(config.storage)
    video_module = VideoModule(
        config,
        storage=storage,
        probe=probe,
        transcoder=FakeTranscoder(storage, probe),
        token_generator=tokens,
        clock=clock,
    )
    await video_module.start()
    yield video_module
    await video_module.stop()


@pytest.fixture
def frame_bytes(small_geometry):
    """Build ``count`` distinguishable frames of the small geometry"""

    def build(count: int, offset: int = 0) -> bytes:
        return b"".join(bytes([(offset + i) % 256]) * small_geometry.frame_size_bytes for i in range(count))

    return build


@pytest.fixture
def stored_raw(module):
    """Store raw bytes and record them as a video"""

    async def store(data: bytes, filename: str = "clip.raw"):
        handle = module.storage.new_handle(".raw")
        await module.storage.write(handle, data)
        duration = module.duration_estimator.estimate_raw(len(data))
        return await module.store.insert_video(filename, handle, len(data), duration)

    return store
