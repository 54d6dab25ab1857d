from __future__ import annotations

"""
🎞️ ReelVault — VideoMetadata
=============================

Maps an object-store key to the uploader who put it there.

Design notes
------------
• `video_key` is the primary key and mirrors the bucket key exactly
  (`videos/<name>`). Rename rewrites it in place.
• `uploader_name` is a **snapshot** taken at upload time. It is not refreshed
  when the user is renamed and survives user deletion.
• `uploader_id` deliberately carries no FK constraint: users can be deleted
  while their videos stay attributed by name.
• Rows can dangle after out-of-band bucket deletes; listing only reads rows
  for keys that exist, so a dangling row is invisible.
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from reelvault.db.base_class import Base


class VideoMetadata(Base):
    __tablename__ = "video_metadata"

    video_key: Mapped[str] = mapped_column(String(1024), primary_key=True)
    uploader_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    uploader_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
