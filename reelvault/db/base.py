# reelvault/db/base.py
"""
ReelVault — SQLAlchemy Base registry
====================================

Import all ORM models so their tables are registered on `Base.metadata`.
Used by Alembic autogeneration and by `init_models()`.

Keep this file import-only; no runtime logic.
"""

from reelvault.db.base_class import Base

from reelvault.db.models.user import User
from reelvault.db.models.video_metadata import VideoMetadata
from reelvault.db.models.upload_history import UploadHistoryEntry

__all__ = [
    "Base",
    "User",
    "VideoMetadata",
    "UploadHistoryEntry",
]
