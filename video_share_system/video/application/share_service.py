"""
Share Link Service.

Issues opaque share tokens and resolves them back to videos while they are
unexpired. Expiry is never written: a link stops resolving once the clock
passes its stored expiry instant.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from ...core.config import ShareConfig
from ..domain.errors import NotFoundError, NotFoundOrExpiredError, UniqueConstraintViolation
from ..domain.interfaces import ByteStorage, TokenGenerator, VideoStore
from ..domain.models import ShareLink, SharedVideo, VideoAsset


class ShareTokenIssuer:
    """Application service for share links"""

    def __init__(
        self,
        store: VideoStore,
        storage: ByteStorage,
        token_generator: TokenGenerator,
        share_config: ShareConfig,
        clock: Callable[[], datetime]
    ):
        self.store = store
        self.storage = storage
        self.token_generator = token_generator
        self.share_config = share_config
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def generate_token(self) -> str:
        """Produce a new opaque token"""
        return self.token_generator.generate()

    async def create_share_link(self, video_id: int, expiry_hours: Optional[float] = None) -> ShareLink:
        """Create a share link for a video, valid for ``expiry_hours``"""
        if expiry_hours is None:
            expiry_hours = self.share_config.default_expiry_hours
        if not math.isfinite(expiry_hours) or expiry_hours <= 0:
            raise ValueError("Expiry hours must be a positive number")

        video = await self.store.get_video(video_id)
        if video is None:
            raise NotFoundError("Video not found")

        try:
            expires_at = self.clock() + timedelta(hours=expiry_hours)
        except OverflowError as e:
            raise ValueError("Expiry hours too large") from e

        attempts = 1 + max(0, self.share_config.token_retry_attempts)
        for attempt in range(1, attempts + 1):
            token = self.generate_token()
            try:
                share_link = await self.store.insert_share_link(video_id, token, expires_at)
                break
            except UniqueConstraintViolation:
                if attempt == attempts:
                    self.logger.error(f"Share token collided {attempts} times for video {video_id}")
                    raise
                self.logger.warning(f"Share token collision for video {video_id}, retrying ({attempt}/{attempts - 1})")

        self.logger.info(f"Created share link {share_link.id} for video {video_id}, expires {share_link.expires_at.isoformat()}")
        return share_link

    async def resolve(self, token: str) -> VideoAsset:
        """Get the video behind an unexpired token"""
        return (await self.resolve_shared(token)).asset

    async def resolve_shared(self, token: str) -> SharedVideo:
        """Get the video and link behind an unexpired token"""
        found = await self.store.find_active_share_link(token, self.clock())
        if found is None:
            # Unknown and expired tokens are reported identically
            self.logger.debug("Share token not found or expired")
            raise NotFoundOrExpiredError("Share link not found or expired")

        share_link, asset = found
        return SharedVideo(asset=asset, share_link=share_link)

    async def open_shared(self, token: str) -> Tuple[SharedVideo, bytes]:
        """Resolve a token and read the shared video's bytes"""
        shared = await self.resolve_shared(token)
        data = await self.storage.read(shared.asset.handle)
        return shared, data

    def share_url(self, token: str) -> str:
        """Public URL for a share token"""
        return f"{self.share_config.base_url.rstrip('/')}/videos/share/{token}"
