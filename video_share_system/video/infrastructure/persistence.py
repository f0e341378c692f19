"""
Video Metadata Persistence.

SQLAlchemy implementation of the video store over an async SQLite engine.
The engine is created and disposed explicitly by its owner.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytz
from sqlalchemy import Float, ForeignKey, Integer, String, event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool
from sqlalchemy.schema import MetaData

from ..domain.errors import NotFoundError, UniqueConstraintViolation
from ..domain.interfaces import VideoStore
from ..domain.models import ShareLink, VideoAsset


# Fixed-width UTC text so timestamps compare correctly as strings
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class VideoRecord(Base):
    __tablename__ = "videos"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    filename: Mapped[str] = mapped_column(String, nullable=False)
    filepath: Mapped[str] = mapped_column(String, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[str] = mapped_column(String(26), nullable=False)


class ShareLinkRecord(Base):
    __tablename__ = "share_links"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    video_id: Mapped[int] = mapped_column(ForeignKey("videos.id"), nullable=False)
    token: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    expiry_timestamp: Mapped[str] = mapped_column(String(26), nullable=False)
    created_at: Mapped[str] = mapped_column(String(26), nullable=False)


def to_db_timestamp(dt: datetime) -> str:
    """Serialize an aware datetime as fixed-width UTC text"""
    if dt.tzinfo is None:
        raise ValueError("Timestamps must be timezone-aware")
    return dt.astimezone(pytz.UTC).strftime(TIMESTAMP_FORMAT)


def from_db_timestamp(value: str) -> datetime:
    """Parse fixed-width UTC text back into an aware datetime"""
    return pytz.UTC.localize(datetime.strptime(value, TIMESTAMP_FORMAT))


def _enable_sqlite_pragmas(in_memory: bool):
    def on_connect(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        if not in_memory:
            cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()

    return on_connect


class SQLiteVideoStore(VideoStore):
    """SQLite implementation of the video store"""

    def __init__(self, db_path: str, clock: Callable[[], datetime]):
        self.db_path = db_path
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker] = None

    async def connect(self) -> None:
        """Create the engine and ensure the schema exists"""
        if self._engine is not None:
            return

        in_memory = self.db_path == ":memory:"
        if in_memory:
            # One shared connection, otherwise every checkout sees an empty database
            engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        else:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            engine = create_async_engine(f"sqlite+aiosqlite:///{self.db_path}")

        event.listen(engine.sync_engine, "connect", _enable_sqlite_pragmas(in_memory))

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
        self.logger.info(f"Video store connected: {self.db_path}")

    async def close(self) -> None:
        """Dispose of the engine"""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        self.logger.info("Video store closed")

    def _session(self) -> AsyncSession:
        if self._sessions is None:
            raise RuntimeError("SQLiteVideoStore is not connected")
        return self._sessions()

    async def insert_video(self, filename: str, handle: str, size_bytes: int, duration_seconds: float) -> VideoAsset:
        """Record a new video asset"""
        record = VideoRecord(
            filename=filename,
            filepath=handle,
            size=size_bytes,
            duration=duration_seconds,
            created_at=to_db_timestamp(self.clock()),
        )

        async with self._session() as session:
            async with session.begin():
                session.add(record)

        self.logger.debug(f"Recorded video {record.id}: {filename} ({size_bytes} bytes, {duration_seconds:.3f}s)")
        return self._map_video(record)

    async def get_video(self, video_id: int) -> Optional[VideoAsset]:
        """Get video asset by ID"""
        async with self._session() as session:
            record = await session.get(VideoRecord, video_id)

        if record is None:
            return None
        return self._map_video(record)

    async def list_videos(self, limit: Optional[int] = None) -> List[VideoAsset]:
        """List video assets, newest first"""
        query = select(VideoRecord).order_by(VideoRecord.id.desc()).limit(limit)

        async with self._session() as session:
            records = (await session.scalars(query)).all()

        return [self._map_video(record) for record in records]

    async def insert_share_link(self, video_id: int, token: str, expires_at: datetime) -> ShareLink:
        """Record a share link"""
        record = ShareLinkRecord(
            video_id=video_id,
            token=token,
            expiry_timestamp=to_db_timestamp(expires_at),
            created_at=to_db_timestamp(self.clock()),
        )

        try:
            async with self._session() as session:
                async with session.begin():
                    if await session.get(VideoRecord, video_id) is None:
                        raise NotFoundError(f"Video {video_id} not found")
                    session.add(record)
        except IntegrityError as e:
            # The video was checked in the same transaction; only the token can clash
            self.logger.warning(f"Share token collision for video {video_id}")
            raise UniqueConstraintViolation("Share token already exists") from e

        return self._map_share_link(record)

    async def find_active_share_link(self, token: str, now: datetime) -> Optional[Tuple[ShareLink, VideoAsset]]:
        """Get the link with ``token`` expiring strictly after ``now``, joined to its video"""
        query = (
            select(ShareLinkRecord, VideoRecord)
            .join(VideoRecord, VideoRecord.id == ShareLinkRecord.video_id)
            .where(ShareLinkRecord.token == token)
            .where(ShareLinkRecord.expiry_timestamp > to_db_timestamp(now))
        )

        async with self._session() as session:
            row = (await session.execute(query)).first()

        if row is None:
            return None

        link_record, video_record = row
        return self._map_share_link(link_record), self._map_video(video_record)

    @staticmethod
    def _map_video(record: VideoRecord) -> VideoAsset:
        return VideoAsset(
            id=record.id,
            filename=record.filename,
            handle=record.filepath,
            size_bytes=record.size,
            duration_seconds=record.duration,
            created_at=from_db_timestamp(record.created_at),
        )

    @staticmethod
    def _map_share_link(record: ShareLinkRecord) -> ShareLink:
        return ShareLink(
            id=record.id,
            video_id=record.video_id,
            token=record.token,
            expires_at=from_db_timestamp(record.expiry_timestamp),
            created_at=from_db_timestamp(record.created_at),
        )
