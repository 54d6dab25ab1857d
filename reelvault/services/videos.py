from __future__ import annotations

"""
🎬 ReelVault — Video Service
============================

The multi-step operations behind `/api/videos` and `/api/upload`. Each call
touches the bucket (through `S3Client`) and the relational store (through the
repositories), in that order.

Operations
----------
- `list_videos()`  one bucket listing + one batched metadata lookup
- `upload()`       size check → quota check → PUT → metadata + ledger (one commit)
- `rename()`       target check → copy → delete old → re-key metadata (see below)
- `delete()`       delete object (missing counts as deleted) → delete metadata row

Rename as a saga
----------------
States: REQUESTED → COPIED → OLD_DELETED → METADATA_UPDATED.

- Target key already holds an object: rejected before the copy, so a
  compensation never deletes a video that predates the rename.
- Old key missing from the bucket: rejected as an invalid key.
- Copy fails: nothing happened, caller may retry.
- Delete of the old key fails: the fresh copy is deleted again. If that
  compensation fails too, both keys hold the video (INCONSISTENT).
- Metadata re-key fails: the object is moved back (copy new → old, delete
  new). If the copy back fails, the object sits at the new key while metadata
  still names the old one (INCONSISTENT; listing shows "Unknown"). If only
  the final delete fails, both keys hold the video (INCONSISTENT).

INCONSISTENT outcomes are logged at ERROR with both keys so an out-of-band
reconciliation pass can find them, and are reported to the caller in
`details.state`. Nothing is retried automatically.

Boto3 is blocking; every bucket call runs through `asyncio.to_thread`.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.core.config import Settings
from reelvault.core.exceptions import (
    PayloadTooLarge,
    PersistenceError,
    StorageUnavailable,
    ValidationError,
)
from reelvault.repositories.quota import QuotaLedger
from reelvault.repositories.video_metadata import UNKNOWN_UPLOADER, VideoMetadataRepository
from reelvault.schemas.videos import VideoOut
from reelvault.services.keys import (
    build_renamed_key,
    build_upload_key,
    display_name,
    ensure_namespaced,
    is_video_key,
)
from reelvault.storage.s3 import S3Client, S3StorageError

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class RenameState(str, Enum):
    REQUESTED = "REQUESTED"
    COPIED = "COPIED"
    OLD_DELETED = "OLD_DELETED"
    METADATA_UPDATED = "METADATA_UPDATED"
    ROLLED_BACK = "ROLLED_BACK"
    INCONSISTENT = "INCONSISTENT"


@dataclass(frozen=True)
class UploadResult:
    key: str
    url: str
    size: int


def _now_ms() -> int:
    return int(time.time() * 1000)


class VideoService:
    """
    Video operations for one request.

    Parameters
    ----------
    session : AsyncSession
        Request-scoped session; the service commits/rolls back.
    s3 : S3Client | None
        None when storage is not configured: every bucket operation then
        fails with `StorageUnavailable`.
    cfg : Settings
        Limits, key prefix and extension allow-list.
    """

    def __init__(
        self,
        session: AsyncSession,
        s3: Optional[S3Client],
        cfg: Settings,
        *,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self.session = session
        self.s3 = s3
        self.cfg = cfg
        self.prefix = cfg.VIDEO_KEY_PREFIX
        self.metadata = VideoMetadataRepository(session)
        self.ledger = QuotaLedger(session, monthly_limit=cfg.MONTHLY_QUOTA_BYTES)
        self._clock_ms = clock_ms

    # ────────────────────────────────────────────────────────────────────────
    # Helpers
    # ────────────────────────────────────────────────────────────────────────

    def _storage(self) -> S3Client:
        if self.s3 is None:
            raise StorageUnavailable()
        return self.s3

    async def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(fn, *args, **kwargs)

    # ────────────────────────────────────────────────────────────────────────
    # 📄 Listing
    # ────────────────────────────────────────────────────────────────────────

    async def list_videos(self) -> List[VideoOut]:
        s3 = self._storage()
        try:
            objects = await self._call(s3.list_objects)
        except S3StorageError as e:
            raise StorageUnavailable(
                f"Failed to connect to object storage: {e}. "
                "Please verify R2_ENDPOINT, R2_ACCESS_KEY_ID, and R2_SECRET_ACCESS_KEY."
            ) from e

        exts = self.cfg.video_extensions
        found = [o for o in objects if is_video_key(o.key, exts)]
        names = await self.metadata.uploader_names(o.key for o in found)

        now_iso = datetime.now(timezone.utc).isoformat()
        videos = [
            VideoOut(
                key=o.key,
                name=display_name(o.key),
                size=o.size,
                last_modified=o.last_modified.isoformat() if o.last_modified else now_iso,
                url=s3.public_url(o.key),
                uploader=names.get(o.key, UNKNOWN_UPLOADER),
            )
            for o in found
        ]
        logger.info("Listed {} videos ({} objects in bucket)", len(videos), len(objects))
        return videos

    # ────────────────────────────────────────────────────────────────────────
    # ⬆️ Upload
    # ────────────────────────────────────────────────────────────────────────

    async def upload(
        self,
        data: Optional[bytes],
        *,
        filename: Optional[str],
        content_type: Optional[str] = None,
        uploader_id: Optional[str] = None,
        uploader_name: Optional[str] = None,
    ) -> UploadResult:
        if data is None:
            raise ValidationError("No file uploaded")
        size = len(data)
        if size > self.cfg.MAX_UPLOAD_BYTES:
            raise PayloadTooLarge(max_bytes=self.cfg.MAX_UPLOAD_BYTES, size=size)

        s3 = self._storage()
        await self.ledger.ensure_capacity(size)

        key = build_upload_key(filename or "video", self._clock_ms(), self.prefix)
        try:
            await self._call(s3.put_bytes, key, data, content_type=content_type or DEFAULT_CONTENT_TYPE)
        except S3StorageError as e:
            raise StorageUnavailable(f"Failed to upload video: {e}", details={"key": key}) from e

        try:
            if uploader_id and uploader_name:
                self.metadata.add(key, uploader_id, uploader_name)
            self.ledger.record(size)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            await self._discard_orphan(s3, key)
            raise PersistenceError(f"Failed to record upload: {e}", details={"key": key}) from e

        logger.info("Uploaded {} ({} bytes, uploader={})", key, size, uploader_name or "-")
        return UploadResult(key=key, url=s3.public_url(key), size=size)

    async def _discard_orphan(self, s3: S3Client, key: str) -> None:
        try:
            await self._call(s3.delete, key)
            logger.warning("Removed unindexed upload {} after metadata failure", key)
        except S3StorageError as e:
            logger.error("Inconsistent upload: object {} stored without metadata/ledger entry: {}", key, e)

    # ────────────────────────────────────────────────────────────────────────
    # ✏️ Rename / move
    # ────────────────────────────────────────────────────────────────────────

    async def rename(self, old_key: str, new_name: Optional[str]) -> str:
        """Move `old_key` to the key derived from `new_name`; returns the new key."""
        ensure_namespaced(old_key, self.prefix)
        if not new_name or not new_name.strip():
            raise ValidationError("Invalid request", details={"field": "newName"})

        new_key = build_renamed_key(old_key, new_name, self.prefix)
        if new_key == old_key:
            return old_key

        s3 = self._storage()

        def _details(state: RenameState) -> Dict[str, Any]:
            return {"state": state.value, "old_key": old_key, "new_key": new_key}

        # 1) Refuse to copy over another video; compensation deletes new_key.
        try:
            taken = await self._call(s3.exists, new_key)
        except S3StorageError as e:
            raise StorageUnavailable(f"Failed to check target key: {e}", details=_details(RenameState.REQUESTED)) from e
        if taken:
            raise ValidationError("A video with that name already exists", details=_details(RenameState.REQUESTED))

        # 2) Copy
        try:
            await self._call(s3.copy, old_key, new_key)
        except S3StorageError as e:
            if e.not_found:
                raise ValidationError("Invalid key", details=_details(RenameState.REQUESTED)) from e
            raise StorageUnavailable(f"Failed to copy video: {e}", details=_details(RenameState.REQUESTED)) from e

        # 3) Delete old
        try:
            await self._call(s3.delete, old_key)
        except S3StorageError as e:
            if not e.not_found:
                state = await self._undo_copy(s3, old_key, new_key)
                raise StorageUnavailable(f"Failed to delete original video: {e}", details=_details(state)) from e

        # 4) Re-key metadata. No object lived at new_key, so a row there is stale.
        try:
            await self.metadata.remove(new_key)
            await self.metadata.rekey(old_key, new_key)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            state = await self._move_back(s3, old_key, new_key)
            raise PersistenceError(f"Failed to update video metadata: {e}", details=_details(state)) from e

        logger.info("Renamed {} → {}", old_key, new_key)
        return new_key

    async def _undo_copy(self, s3: S3Client, old_key: str, new_key: str) -> RenameState:
        try:
            await self._call(s3.delete, new_key)
        except S3StorageError as e:
            logger.error(
                "Inconsistent rename: video stored under both {} and {}; metadata still points at {}: {}",
                old_key, new_key, old_key, e,
            )
            return RenameState.INCONSISTENT
        logger.warning("Rename {} → {} rolled back after delete failure", old_key, new_key)
        return RenameState.ROLLED_BACK

    async def _move_back(self, s3: S3Client, old_key: str, new_key: str) -> RenameState:
        try:
            await self._call(s3.copy, new_key, old_key)
        except S3StorageError as e:
            logger.error(
                "Inconsistent rename: video moved to {} but metadata still points at {}: {}",
                new_key, old_key, e,
            )
            return RenameState.INCONSISTENT
        try:
            await self._call(s3.delete, new_key)
        except S3StorageError as e:
            logger.error(
                "Inconsistent rename: video restored to {} but a copy remains at {}: {}",
                old_key, new_key, e,
            )
            return RenameState.INCONSISTENT
        logger.warning("Rename {} → {} rolled back after metadata failure", old_key, new_key)
        return RenameState.ROLLED_BACK

    # ────────────────────────────────────────────────────────────────────────
    # 🗑️ Delete
    # ────────────────────────────────────────────────────────────────────────

    async def delete(self, key: str) -> None:
        ensure_namespaced(key, self.prefix)
        s3 = self._storage()
        try:
            await self._call(s3.delete, key)
        except S3StorageError as e:
            if not e.not_found:
                raise StorageUnavailable(f"Failed to delete video: {e}", details={"key": key}) from e
            logger.info("Object {} already gone; clearing metadata only", key)

        try:
            await self.metadata.remove(key)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"Failed to delete video metadata: {e}", details={"key": key}) from e
        logger.info("Deleted {}", key)


__all__ = ["VideoService", "RenameState", "UploadResult"]
