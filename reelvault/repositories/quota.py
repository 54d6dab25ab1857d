from __future__ import annotations

"""
ReelVault — Quota Ledger
========================

Monthly storage accounting over the append-only `upload_history` table.

Conventions
-----------
- Months are **UTC calendar months**, keyed `YYYY-MM`.
- Current-month usage is a half-open range query
  (`month_start <= timestamp < next_month_start`) so it stays index-friendly.
- History groups by month key in SQL; the month expression is picked per
  dialect (SQLite `strftime`, PostgreSQL `to_char`).

Known weakness
--------------
`ensure_capacity()` followed by `record()` is check-then-act. Two uploads that
run concurrently can both pass the check before either entry is committed.
Accepted for a single-tenant deployment.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.core.exceptions import QuotaExceeded
from reelvault.db.models.upload_history import UploadHistoryEntry


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """UTC `[start, end)` of the calendar month containing `now`."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def _month_expr(dialect: str, column):
    if dialect == "postgresql":
        return func.to_char(func.timezone("UTC", column), "YYYY-MM")
    return func.strftime("%Y-%m", column)


class QuotaLedger:
    """Ledger queries bound to one session and one monthly limit."""

    def __init__(self, session: AsyncSession, *, monthly_limit: int) -> None:
        self.session = session
        self.monthly_limit = monthly_limit

    async def current_month_usage(self, now: Optional[datetime] = None) -> int:
        start, end = month_bounds(now or datetime.now(timezone.utc))
        total = (
            await self.session.execute(
                select(func.coalesce(func.sum(UploadHistoryEntry.size), 0)).where(
                    UploadHistoryEntry.timestamp >= start,
                    UploadHistoryEntry.timestamp < end,
                )
            )
        ).scalar_one()
        return int(total or 0)

    async def ensure_capacity(self, size: int, now: Optional[datetime] = None) -> int:
        """Raise `QuotaExceeded` if `size` does not fit this month; return current usage."""
        used = await self.current_month_usage(now)
        if used + size > self.monthly_limit:
            raise QuotaExceeded(used=used, limit=self.monthly_limit, size=size)
        return used

    def record(self, size: int, *, at: Optional[datetime] = None) -> UploadHistoryEntry:
        """Append one entry to the session (caller commits)."""
        entry = UploadHistoryEntry(size=int(size))
        if at is not None:
            entry.timestamp = at
        self.session.add(entry)
        return entry

    async def monthly_history(self, months: int = 12) -> List[Dict[str, Any]]:
        """Per-month totals, newest first, at most `months` rows (empty months omitted)."""
        dialect = self.session.get_bind().dialect.name
        month = _month_expr(dialect, UploadHistoryEntry.timestamp).label("month")
        rows = (
            await self.session.execute(
                select(month, func.sum(UploadHistoryEntry.size).label("total"))
                .group_by(month)
                .order_by(month.desc())
                .limit(months)
            )
        ).all()
        return [{"month": r.month, "total": int(r.total or 0)} for r in rows]


__all__ = ["QuotaLedger", "month_bounds"]
