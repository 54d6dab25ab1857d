# reelvault/api/deps.py
from __future__ import annotations

"""
ReelVault — Request dependencies
================================

- `get_settings`       the `Settings` the app was built with
- `get_s3_client`      the app-wide `S3Client`, or None when storage is unconfigured
- `get_video_service`  a `VideoService` bound to the request's DB session

Tests override `get_s3_client` / `get_async_db` via `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.core.config import Settings, settings
from reelvault.db.session import get_async_db
from reelvault.services.videos import VideoService
from reelvault.storage.s3 import S3Client, S3StorageError


def build_s3_client(cfg: Settings) -> Optional[S3Client]:
    """Create the bucket client once at startup; None when storage is not configured."""
    if not cfg.storage_configured:
        logger.warning("Object storage not configured; video routes will answer 500")
        return None
    try:
        return S3Client(cfg)
    except S3StorageError:
        logger.exception("Failed to initialise S3 client")
        return None


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or settings


def get_s3_client(request: Request) -> Optional[S3Client]:
    return getattr(request.app.state, "s3_client", None)


def get_video_service(
    db: AsyncSession = Depends(get_async_db),
    s3: Optional[S3Client] = Depends(get_s3_client),
    cfg: Settings = Depends(get_settings),
) -> VideoService:
    return VideoService(db, s3, cfg)


__all__ = ["build_s3_client", "get_settings", "get_s3_client", "get_video_service"]
