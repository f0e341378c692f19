"""
Tests for trimming and merging stored videos.
"""

import pytest

from video_share_system.video.domain.errors import (
    EmptyInputError,
    GeometryMismatchError,
    InvalidRangeError,
    NotFoundError,
    ProbeError,
)
from video_share_system.video.domain.models import Both, FromEnd, FromStart, NoTrim


async def store_encoded(module, probe, filename="clip.mp4", duration=5.0):
    handle = module.storage.new_handle(".mp4")
    await module.storage.write(handle, b"container")
    probe.durations[handle] = duration
    return await module.store.insert_video(filename, handle, 9, duration)


def stored_files(module):
    return sorted(p.name for p in module.storage.base_path.iterdir())


@pytest.mark.asyncio
async def test_trim_raw_creates_new_asset(module, stored_raw, frame_bytes):
    source_bytes = frame_bytes(30)
    source = await stored_raw(source_bytes, "clip.raw")

    trimmed = await module.editing_service.trim(source.id, FromStart(1))

    assert trimmed.id != source.id
    assert trimmed.duration_seconds == 2.0
    assert trimmed.size_bytes == 20 * 24
    assert trimmed.filename.startswith("clip-trimmed-")
    assert trimmed.filename.endswith(".raw")
    assert await module.storage.read(trimmed.handle) == source_bytes[10 * 24:]
    assert await module.storage.size(trimmed.handle) == trimmed.size_bytes

    # Source untouched
    assert await module.storage.read(source.handle) == source_bytes
    assert await module.store.get_video(source.id) == source


@pytest.mark.asyncio
async def test_trim_both_ends(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(30))
    trimmed = await module.editing_service.trim(source.id, Both(0.5, 0.5))
    assert trimmed.duration_seconds == 2.0
    assert trimmed.size_bytes == 20 * 24


@pytest.mark.asyncio
async def test_trim_requires_a_window(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(30))
    with pytest.raises(InvalidRangeError, match="Provide either"):
        await module.editing_service.trim(source.id, NoTrim())


@pytest.mark.asyncio
async def test_trim_rejects_negative_seconds(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(30))
    with pytest.raises(InvalidRangeError, match="positive"):
        await module.editing_service.trim(source.id, FromStart(-1))


@pytest.mark.asyncio
@pytest.mark.parametrize("window", [FromStart(float("nan")), FromEnd(float("inf"))])
async def test_trim_rejects_non_finite_seconds(module, stored_raw, frame_bytes, window):
    source = await stored_raw(frame_bytes(30))
    files_before = stored_files(module)

    with pytest.raises(InvalidRangeError):
        await module.editing_service.trim(source.id, window)

    assert stored_files(module) == files_before


@pytest.mark.asyncio
async def test_trim_past_end_is_rejected_not_clamped(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(30))
    files_before = stored_files(module)

    with pytest.raises(InvalidRangeError):
        await module.editing_service.trim(source.id, FromEnd(5))

    assert stored_files(module) == files_before
    assert len(await module.store.list_videos()) == 1


@pytest.mark.asyncio
async def test_trim_unknown_video(module):
    with pytest.raises(NotFoundError):
        await module.editing_service.trim(12345, FromStart(1))


@pytest.mark.asyncio
async def test_trim_encoded_delegates_and_reprobes(module, probe):
    source = await store_encoded(module, probe, duration=5.0)
    module.transcoder.output_duration = 2.96

    trimmed = await module.editing_service.trim(source.id, Both(1, 1))

    assert module.transcoder.trim_calls == [(source.handle, 1.0, 1.0)]
    assert trimmed.duration_seconds == 2.96
    assert trimmed.size_bytes == len(b"trimmed-container")
    assert trimmed.handle in probe.calls


@pytest.mark.asyncio
async def test_trim_encoded_probe_failure_removes_output(module, probe):
    source = await store_encoded(module, probe)

    async def failing_trim(handle, start_seconds=None, end_seconds=None):
        output = module.storage.new_handle(".mp4")
        await module.storage.write(output, b"corrupt")
        return output

    module.transcoder.trim = failing_trim
    files_before = stored_files(module)

    with pytest.raises(ProbeError):
        await module.editing_service.trim(source.id, FromStart(1))

    assert stored_files(module) == files_before


@pytest.mark.asyncio
async def test_merge_raw(module, stored_raw, frame_bytes):
    first_bytes = frame_bytes(10, offset=0)
    second_bytes = frame_bytes(15, offset=50)
    first = await stored_raw(first_bytes, "a.raw")
    second = await stored_raw(second_bytes, "b.raw")

    merged = await module.editing_service.merge([second.id, first.id])

    assert merged.duration_seconds == pytest.approx(2.5, abs=1e-6)
    assert merged.size_bytes == len(first_bytes) + len(second_bytes)
    assert merged.filename.startswith("merged-")
    assert await module.storage.read(merged.handle) == second_bytes + first_bytes


@pytest.mark.asyncio
async def test_merge_same_video_twice(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(10))
    merged = await module.editing_service.merge([source.id, source.id])
    assert merged.duration_seconds == 2.0


@pytest.mark.asyncio
@pytest.mark.parametrize("video_ids", [[], [1]])
async def test_merge_needs_two_inputs(module, video_ids):
    with pytest.raises(EmptyInputError):
        await module.editing_service.merge(video_ids)


@pytest.mark.asyncio
async def test_merge_unknown_video(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(10))
    with pytest.raises(NotFoundError):
        await module.editing_service.merge([source.id, 999])


@pytest.mark.asyncio
async def test_merge_rejects_mixed_raw_and_encoded(module, probe, stored_raw, frame_bytes):
    raw = await stored_raw(frame_bytes(10))
    encoded = await store_encoded(module, probe)
    with pytest.raises(GeometryMismatchError):
        await module.editing_service.merge([raw.id, encoded.id])


@pytest.mark.asyncio
async def test_merge_partial_frames_allowed_by_default(module, stored_raw):
    first = await stored_raw(b"\x00" * 30)
    second = await stored_raw(b"\x00" * 18)
    merged = await module.editing_service.merge([first.id, second.id])
    assert merged.size_bytes == 48
    assert merged.duration_seconds == pytest.approx(48 / 240)


@pytest.mark.asyncio
async def test_merge_strict_geometry(module, stored_raw, frame_bytes):
    module.editing_service.strict_geometry = True
    whole = await stored_raw(frame_bytes(10))
    partial = await stored_raw(b"\x00" * 30)

    with pytest.raises(GeometryMismatchError):
        await module.editing_service.merge([whole.id, partial.id])


@pytest.mark.asyncio
async def test_merge_encoded_delegates_to_concat(module, probe):
    first = await store_encoded(module, probe, "a.mp4", 5.0)
    second = await store_encoded(module, probe, "b.mp4", 5.0)
    module.transcoder.output_duration = 10.02

    merged = await module.editing_service.merge([first.id, second.id])

    assert module.transcoder.concat_calls == [[first.handle, second.handle]]
    assert merged.duration_seconds == 10.02
    assert merged.filename.endswith(".mp4")


@pytest.mark.asyncio
async def test_failed_record_removes_orphaned_derivative(module, stored_raw, frame_bytes):
    source = await stored_raw(frame_bytes(30))
    files_before = stored_files(module)

    async def failing_insert(*args, **kwargs):
        raise RuntimeError("database is locked")

    module.store.insert_video = failing_insert

    with pytest.raises(RuntimeError):
        await module.editing_service.trim(source.id, FromStart(1))

    assert stored_files(module) == files_before
