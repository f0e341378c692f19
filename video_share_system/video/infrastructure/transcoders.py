"""
Video Transcoders.

Trimming and concatenation of container-encoded media using FFmpeg.
Seeking inside a container is not frame-accurate, so callers re-probe the
produced file instead of trusting the requested window.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from ..domain.errors import TranscodeError
from ..domain.interfaces import ByteStorage, DurationProbe, TranscodeEngine


class FFmpegTranscodeEngine(TranscodeEngine):
    """FFmpeg-based transcoding engine"""

    def __init__(self, storage: ByteStorage, probe: DurationProbe, ffmpeg_binary: str = "ffmpeg"):
        self.storage = storage
        self.probe = probe
        self.ffmpeg_binary = ffmpeg_binary
        self.logger = logging.getLogger(__name__)

        # Check if FFmpeg is available
        self._ffmpeg_available = shutil.which(ffmpeg_binary) is not None
        if not self._ffmpeg_available:
            self.logger.warning("FFmpeg not found - encoded trim/merge will fail")

    async def trim(
        self,
        handle: str,
        start_seconds: Optional[float] = None,
        end_seconds: Optional[float] = None
    ) -> str:
        """Trim an encoded video into a fresh handle"""
        source_path = self.storage.path_for(handle)
        output_handle = self.storage.new_handle(source_path.suffix)

        # Trimming from the end needs the source duration first
        length = None
        if end_seconds:
            duration = await self.probe.probe(handle)
            length = duration - end_seconds - (start_seconds or 0)
            if length <= 0:
                raise TranscodeError(f"Trim window leaves nothing of {handle} ({duration:.3f}s)")

        cmd = self._build_trim_command(source_path, self.storage.path_for(output_handle), start_seconds, length)

        self.logger.info(f"Trimming {handle} into {output_handle} using FFmpeg")
        await self._run(cmd, output_handle)
        return output_handle

    async def concat(self, handles: List[str]) -> str:
        """Concatenate encoded videos into a fresh handle with the concat demuxer"""
        if not handles:
            raise TranscodeError("Nothing to concatenate")

        suffix = self.storage.path_for(handles[0]).suffix
        output_handle = self.storage.new_handle(suffix)

        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False) as list_file:
            for handle in handles:
                path = self.storage.path_for(handle).resolve()
                escaped = str(path).replace("'", "'\\''")
                list_file.write(f"file '{escaped}'\n")
            list_path = Path(list_file.name)

        cmd = [
            self.ffmpeg_binary,
            "-f", "concat",
            "-safe", "0",
            "-i", str(list_path),
            "-c", "copy",
            "-y",
            str(self.storage.path_for(output_handle)),
        ]

        self.logger.info(f"Concatenating {len(handles)} videos into {output_handle} using FFmpeg")
        try:
            await self._run(cmd, output_handle)
        finally:
            list_path.unlink(missing_ok=True)
        return output_handle

    async def _run(self, cmd: List[str], output_handle: str) -> None:
        """Run FFmpeg and wait for it; raises TranscodeError on failure"""
        if not self._ffmpeg_available:
            raise TranscodeError("FFmpeg not available")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            _, stderr = await process.communicate()
        except OSError as e:
            raise TranscodeError(f"Could not start FFmpeg: {e}") from e

        if process.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown FFmpeg error"
            self.logger.error(f"FFmpeg failed for {output_handle}: {error_msg}")
            output_path = self.storage.path_for(output_handle)
            output_path.unlink(missing_ok=True)
            raise TranscodeError(f"Error processing video: {error_msg.splitlines()[-1] if error_msg else 'unknown'}")

        self.logger.info(f"FFmpeg produced {output_handle}")

    def _build_trim_command(
        self,
        source_path: Path,
        target_path: Path,
        start_seconds: Optional[float],
        length: Optional[float]
    ) -> List[str]:
        """Build FFmpeg command for a trim"""
        cmd = [self.ffmpeg_binary]

        if start_seconds:
            cmd.extend(["-ss", f"{start_seconds:.6f}"])  # Input seek

        cmd.extend(["-i", str(source_path)])

        if length is not None:
            cmd.extend(["-t", f"{length:.6f}"])

        cmd.extend([
            "-c:v", "libx264",
            "-c:a", "aac",
            "-movflags", "+faststart",
            "-preset", "fast",
            "-y",  # Overwrite output file
            str(target_path)
        ])

        return cmd
