# ─────────────────────────────────────────────────────────────────────────────
# 📊 Storage quota API (current month usage, monthly history)
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.api.deps import get_settings
from reelvault.core.config import Settings
from reelvault.core.limiter import rate_limit
from reelvault.db.session import get_async_db
from reelvault.repositories.quota import QuotaLedger
from reelvault.schemas.storage import StorageHistoryPoint, StorageUsageOut

router = APIRouter(tags=["Storage"])
__all__ = ["router"]


@router.get("/storage-usage", response_model=StorageUsageOut, summary="Bytes uploaded this UTC month")
@rate_limit("120/minute")
async def storage_usage(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    cfg: Settings = Depends(get_settings),
) -> JSONResponse:
    ledger = QuotaLedger(db, monthly_limit=cfg.MONTHLY_QUOTA_BYTES)
    used = await ledger.current_month_usage()
    return JSONResponse(content=StorageUsageOut(used=used, limit=cfg.MONTHLY_QUOTA_BYTES).model_dump())


@router.get("/storage-history", response_model=list[StorageHistoryPoint], summary="Monthly upload totals")
@rate_limit("120/minute")
async def storage_history(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    cfg: Settings = Depends(get_settings),
) -> JSONResponse:
    ledger = QuotaLedger(db, monthly_limit=cfg.MONTHLY_QUOTA_BYTES)
    rows = await ledger.monthly_history(cfg.STORAGE_HISTORY_MONTHS)
    return JSONResponse(content=[StorageHistoryPoint(**r).model_dump() for r in rows])
