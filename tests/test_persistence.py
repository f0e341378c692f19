"""
Tests for the SQLite video store.
"""

from datetime import timedelta

import pytest
import pytest_asyncio

from video_share_system.video.domain.errors import NotFoundError, UniqueConstraintViolation
from video_share_system.video.infrastructure.persistence import (
    SQLiteVideoStore,
    from_db_timestamp,
    to_db_timestamp,
)


@pytest_asyncio.fixture
async def store(tmp_path, clock):
    video_store = SQLiteVideoStore(str(tmp_path / "videos.db"), clock=clock)
    await video_store.connect()
    yield video_store
    await video_store.close()


@pytest.mark.asyncio
async def test_insert_and_get_video(store, clock):
    asset = await store.insert_video("clip.raw", "h1.raw", 240, 1.0)

    loaded = await store.get_video(asset.id)
    assert loaded == asset
    assert loaded.filename == "clip.raw"
    assert loaded.handle == "h1.raw"
    assert loaded.size_bytes == 240
    assert loaded.duration_seconds == 1.0
    assert loaded.created_at == clock.now


@pytest.mark.asyncio
async def test_get_missing_video(store):
    assert await store.get_video(404) is None


@pytest.mark.asyncio
async def test_list_videos_newest_first(store):
    first = await store.insert_video("a.raw", "a.raw", 1, 0.1)
    second = await store.insert_video("b.raw", "b.raw", 1, 0.1)

    assert [v.id for v in await store.list_videos()] == [second.id, first.id]
    assert [v.id for v in await store.list_videos(limit=1)] == [second.id]


@pytest.mark.asyncio
async def test_share_link_round_trip(store, clock):
    asset = await store.insert_video("clip.raw", "h.raw", 240, 1.0)
    expires_at = clock.now + timedelta(hours=24)

    link = await store.insert_share_link(asset.id, "tok", expires_at)
    assert link.token == "tok"
    assert link.expires_at == expires_at

    found = await store.find_active_share_link("tok", clock.now)
    assert found is not None
    found_link, found_asset = found
    assert found_link == link
    assert found_asset == asset


@pytest.mark.asyncio
async def test_duplicate_token_is_rejected(store, clock):
    asset = await store.insert_video("clip.raw", "h.raw", 240, 1.0)
    await store.insert_share_link(asset.id, "dup", clock.now + timedelta(hours=1))

    with pytest.raises(UniqueConstraintViolation):
        await store.insert_share_link(asset.id, "dup", clock.now + timedelta(hours=2))


@pytest.mark.asyncio
async def test_share_link_for_unknown_video(store, clock):
    with pytest.raises(NotFoundError):
        await store.insert_share_link(999, "tok", clock.now + timedelta(hours=1))


@pytest.mark.asyncio
async def test_expiry_comparison_is_strict(store, clock):
    asset = await store.insert_video("clip.raw", "h.raw", 240, 1.0)
    expires_at = clock.now + timedelta(hours=1)
    await store.insert_share_link(asset.id, "tok", expires_at)

    assert await store.find_active_share_link("tok", expires_at - timedelta(microseconds=1)) is not None
    assert await store.find_active_share_link("tok", expires_at) is None
    assert await store.find_active_share_link("tok", expires_at + timedelta(seconds=1)) is None
    assert await store.find_active_share_link("other", clock.now) is None


@pytest.mark.asyncio
async def test_store_requires_connection(tmp_path, clock):
    video_store = SQLiteVideoStore(str(tmp_path / "videos.db"), clock=clock)
    with pytest.raises(RuntimeError):
        await video_store.get_video(1)


@pytest.mark.asyncio
async def test_records_survive_reconnect(tmp_path, clock):
    path = str(tmp_path / "videos.db")
    video_store = SQLiteVideoStore(path, clock=clock)
    await video_store.connect()
    asset = await video_store.insert_video("clip.raw", "h.raw", 24, 0.1)
    await video_store.close()

    await video_store.connect()
    assert await video_store.get_video(asset.id) == asset
    await video_store.close()


def test_timestamps_are_fixed_width_utc(clock):
    text = to_db_timestamp(clock.now)
    assert text == "2024-03-01 12:00:00.000000"
    assert from_db_timestamp(text) == clock.now


def test_naive_timestamps_are_rejected(clock):
    with pytest.raises(ValueError):
        to_db_timestamp(clock.now.replace(tzinfo=None))


@pytest.mark.asyncio
async def test_in_memory_store(clock):
    video_store = SQLiteVideoStore(":memory:", clock=clock)
    await video_store.connect()
    try:
        asset = await video_store.insert_video("clip.raw", "h.raw", 24, 0.1)
        link = await video_store.insert_share_link(asset.id, "tok", clock.now + timedelta(hours=1))

        assert await video_store.get_video(asset.id) == asset
        assert await video_store.find_active_share_link("tok", clock.now) == (link, asset)
    finally:
        await video_store.close()


@pytest.mark.asyncio
async def test_collision_leaves_first_link_intact(store, clock):
    asset = await store.insert_video("clip.raw", "h.raw", 240, 1.0)
    first = await store.insert_share_link(asset.id, "dup", clock.now + timedelta(hours=1))

    with pytest.raises(UniqueConstraintViolation):
        await store.insert_share_link(asset.id, "dup", clock.now + timedelta(hours=5))

    found_link, _ = await store.find_active_share_link("dup", clock.now)
    assert found_link == first
