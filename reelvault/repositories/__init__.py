"""
Repository package for data access layers.

Each repository wraps one `AsyncSession`. The ledger and metadata
repositories never commit (the video service owns the transaction);
`UserRepository` commits its single-statement writes.
"""

from reelvault.repositories.quota import QuotaLedger
from reelvault.repositories.users import UserRepository
from reelvault.repositories.video_metadata import UNKNOWN_UPLOADER, VideoMetadataRepository

__all__ = ["QuotaLedger", "UserRepository", "VideoMetadataRepository", "UNKNOWN_UPLOADER"]
