"""
🧭 ReelVault • API Router Aggregator
===================================

Composes the resource routers into one `router`, mounted by the app factory
under `settings.API_PREFIX` (default `/api`).

    from reelvault.api.routers import router as api_router
    app.include_router(api_router, prefix="/api")
"""

from fastapi import APIRouter

from .storage import router as storage_router
from .users import router as users_router
from .videos import router as videos_router


def build_api_router() -> APIRouter:
    """Return a fresh router with every resource router included."""
    api = APIRouter()
    api.include_router(videos_router)
    api.include_router(users_router)
    api.include_router(storage_router)
    return api


router = build_api_router()

__all__ = ["router", "build_api_router", "videos_router", "users_router", "storage_router"]
