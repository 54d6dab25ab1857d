from __future__ import annotations

"""
🧾 ReelVault — UploadHistoryEntry (quota ledger)
================================================

Append-only: one row per successful upload, never updated or deleted by the
application. Monthly usage is the sum of `size` over rows whose `timestamp`
falls inside the month (UTC).
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from reelvault.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadHistoryEntry(Base):
    __tablename__ = "upload_history"
    __table_args__ = (
        CheckConstraint("size >= 0", name="size_nonneg"),
    )

    # Integer (not BigInteger) so SQLite maps it to ROWID autoincrement.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
