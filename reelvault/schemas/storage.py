from __future__ import annotations

from pydantic import BaseModel, Field


class StorageUsageOut(BaseModel):
    """Current UTC month usage, in bytes."""
    used: int
    limit: int


class StorageHistoryPoint(BaseModel):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")
    total: int
