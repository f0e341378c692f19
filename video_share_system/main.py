"""
Main Application Coordinator for the Video Share System.

This module loads configuration, sets up logging, owns the video module's
lifecycle and exposes the command line interface.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .core.config import Config
from .core.logging_config import setup_logging, get_error_tracker
from .video.domain.errors import VideoShareError
from .video.domain.models import ShareLink, TrimWindow, VideoAsset
from .video.infrastructure.synthetic import write_raw_video
from .video.integration import VideoModule


class VideoShareSystem:
    """Main application coordinator for the Video Share System"""

    def __init__(self, config_file: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration first (basic logging will be used initially)
        self.config = Config(config_file)

        self.logger_setup = setup_logging(
            log_level=log_level or self.config.system.log_level,
            log_file=self.config.system.log_file
        )
        self.logger = logging.getLogger(__name__)
        self.error_tracker = get_error_tracker("main_system")

        self.video_module = VideoModule(self.config)

        self.logger.info("Video Share System initialized")

    async def ingest(self, path: str, name: Optional[str] = None) -> Dict[str, Any]:
        asset = await self.video_module.ingest_service.ingest(Path(path), name)
        return video_to_dict(asset)

    async def trim(self, video_id: int, start: Optional[float], end: Optional[float]) -> Dict[str, Any]:
        window = TrimWindow.from_values(start, end)
        asset = await self.video_module.editing_service.trim(video_id, window)
        return video_to_dict(asset)

    async def merge(self, video_ids) -> Dict[str, Any]:
        asset = await self.video_module.editing_service.merge(video_ids)
        return video_to_dict(asset)

    async def share(self, video_id: int, hours: Optional[float]) -> Dict[str, Any]:
        share_service = self.video_module.share_service
        share_link = await share_service.create_share_link(video_id, hours)
        return share_to_dict(share_link, share_service.share_url(share_link.token))

    async def resolve(self, token: str, output: Optional[str] = None) -> Dict[str, Any]:
        share_service = self.video_module.share_service
        if output is None:
            shared = await share_service.resolve_shared(token)
        else:
            shared, data = await share_service.open_shared(token)
            Path(output).write_bytes(data)

        result = video_to_dict(shared.asset)
        result.update({
            "content_type": shared.content_type,
            "content_disposition": shared.content_disposition,
            "expiry_timestamp": shared.share_link.expires_at.isoformat(),
        })
        if output is not None:
            result["output"] = output
        return result

    async def list_videos(self, limit: Optional[int]) -> Dict[str, Any]:
        videos = await self.video_module.store.list_videos(limit)
        return {"videos": [video_to_dict(video) for video in videos]}

    def get_system_status(self) -> Dict[str, Any]:
        """Get system status"""
        return {
            "video_module": self.video_module.get_module_status(),
            "storage": self.video_module.storage.get_storage_statistics(),
            "errors": self.error_tracker.get_error_stats(),
        }

    async def run_command(self, args) -> Dict[str, Any]:
        """Run one CLI command inside the video module's lifecycle"""
        async with self.video_module:
            if args.command == "ingest":
                return await self.ingest(args.path, args.name)
            if args.command == "trim":
                return await self.trim(args.video_id, args.start, args.end)
            if args.command == "merge":
                return await self.merge(args.video_ids)
            if args.command == "share":
                return await self.share(args.video_id, args.hours)
            if args.command == "resolve":
                return await self.resolve(args.token, args.output)
            if args.command == "list":
                return await self.list_videos(args.limit)
            return self.get_system_status()


def video_to_dict(asset: VideoAsset) -> Dict[str, Any]:
    return {
        "id": asset.id,
        "filename": asset.filename,
        "size": asset.size_bytes,
        "duration": asset.duration_seconds,
        "created_at": asset.created_at.isoformat(),
    }


def share_to_dict(share_link: ShareLink, share_url: str) -> Dict[str, Any]:
    return {
        "shareUrl": share_url,
        "token": share_link.token,
        "videoId": share_link.video_id,
        "expiryTimestamp": share_link.expires_at.isoformat(),
    }


def build_parser():
    """Build the command line parser"""
    import argparse

    parser = argparse.ArgumentParser(description="Video Share System")
    parser.add_argument("--config", type=str, help="Path to configuration file", default="config.json")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Override log level", default=None)

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Write a solid-colour raw test clip")
    generate.add_argument("output", type=str)
    generate.add_argument("--duration", type=float, default=5.0, help="Clip length in seconds")
    generate.add_argument("--color", type=str, default="red")

    ingest = subparsers.add_parser("ingest", help="Upload a video file")
    ingest.add_argument("path", type=str)
    ingest.add_argument("--name", type=str, default=None, help="Original filename (defaults to the file's name)")

    trim = subparsers.add_parser("trim", help="Trim a video into a new one")
    trim.add_argument("video_id", type=int)
    trim.add_argument("--start", type=float, default=None, help="Seconds to trim from the start")
    trim.add_argument("--end", type=float, default=None, help="Seconds to trim from the end")

    merge = subparsers.add_parser("merge", help="Concatenate videos into a new one")
    merge.add_argument("video_ids", type=int, nargs="+")

    share = subparsers.add_parser("share", help="Create a share link")
    share.add_argument("video_id", type=int)
    share.add_argument("--hours", type=float, default=None, help="Hours until the link expires")

    resolve = subparsers.add_parser("resolve", help="Resolve a share token")
    resolve.add_argument("token", type=str)
    resolve.add_argument("--output", type=str, default=None, help="Write the shared video to this path")

    listing = subparsers.add_parser("list", help="List stored videos")
    listing.add_argument("--limit", type=int, default=None)

    subparsers.add_parser("status", help="Show system status")

    return parser


def main(argv=None):
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)

    system = VideoShareSystem(args.config, args.log_level)

    try:
        if args.command == "generate":
            written = write_raw_video(Path(args.output), args.duration, system.config.get_raw_geometry(), args.color)
            result = {"output": args.output, "size": written}
        else:
            result = asyncio.run(system.run_command(args))
    except (VideoShareError, ValueError) as e:
        system.error_tracker.log_error(e, args.command)
        print(json.dumps({"error": str(e)}))
        sys.exit(1)

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
