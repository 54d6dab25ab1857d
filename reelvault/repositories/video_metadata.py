from __future__ import annotations

"""
ReelVault — Video metadata repository.

Single-row statements over `video_metadata`. Nothing here commits; the
calling service owns the transaction.
"""

from typing import Dict, Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.db.models.video_metadata import VideoMetadata

UNKNOWN_UPLOADER = "Unknown"


class VideoMetadataRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def uploader_names(self, keys: Iterable[str]) -> Dict[str, str]:
        """`{video_key: uploader_name}` for the keys that have a row with a name."""
        wanted = list(dict.fromkeys(keys))
        if not wanted:
            return {}
        rows = (
            await self.session.execute(
                select(VideoMetadata.video_key, VideoMetadata.uploader_name).where(
                    VideoMetadata.video_key.in_(wanted)
                )
            )
        ).all()
        return {r.video_key: r.uploader_name for r in rows if r.uploader_name}

    def add(self, video_key: str, uploader_id: str, uploader_name: str) -> VideoMetadata:
        row = VideoMetadata(video_key=video_key, uploader_id=uploader_id, uploader_name=uploader_name)
        self.session.add(row)
        return row

    async def rekey(self, old_key: str, new_key: str) -> int:
        """Move the row from `old_key` to `new_key`; returns rows touched (0 or 1)."""
        result = await self.session.execute(
            update(VideoMetadata).where(VideoMetadata.video_key == old_key).values(video_key=new_key)
        )
        return int(result.rowcount or 0)

    async def remove(self, video_key: str) -> int:
        """Delete the row if present; returns rows touched (0 or 1)."""
        result = await self.session.execute(delete(VideoMetadata).where(VideoMetadata.video_key == video_key))
        return int(result.rowcount or 0)


__all__ = ["VideoMetadataRepository", "UNKNOWN_UPLOADER"]
