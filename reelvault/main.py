# reelvault/main.py
from __future__ import annotations

"""
# ReelVault API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the ReelVault video-asset manager.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Middleware order: request id → CORS → gzip → rate limits.
- JSON error bodies everywhere (`reelvault.core.exception_handlers`).
- One DB engine and one bucket client per app, built from its `Settings` and
  kept on `app.state`.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (DB `SELECT 1` + bucket HEAD).
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from reelvault.core import logger as _logsetup  # noqa: F401

from reelvault.api.deps import build_s3_client
from reelvault.api.routers import router as api_router
from reelvault.core.config import Settings, settings
from reelvault.core.exception_handlers import install_exception_handlers
from reelvault.core.limiter import install_rate_limiter, rate_limit_exempt
from reelvault.db.session import build_engine, build_session_maker, db_healthcheck, init_models
from reelvault.middleware.request_id import RequestIDMiddleware


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Create missing tables (the service bootstraps its own schema).

    Shutdown:
        - Dispose the DB async engine.
    """
    logger.info("✅ {} starting up", app.title)
    await init_models(app.state.db_engine)
    try:
        yield
    finally:
        await app.state.db_engine.dispose()
        logger.info("🛑 Database engine disposed")
        logger.info("🛑 {} shutting down", app.title)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Args:
        cfg: settings to bind (defaults to the module singleton).

    Returns:
        FastAPI: application with middleware, exception handlers, routers,
        and health/readiness endpoints.
    """
    cfg = cfg or settings
    docs_url = "/docs" if cfg.ENABLE_DOCS else None
    redoc_url = "/redoc" if cfg.ENABLE_DOCS else None
    openapi_url = "/openapi.json" if cfg.ENABLE_DOCS else None

    app = FastAPI(
        title=cfg.PROJECT_NAME,
        version=cfg.VERSION,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.db_engine = build_engine(cfg)
    app.state.session_maker = build_session_maker(app.state.db_engine)
    app.state.s3_client = build_s3_client(cfg)

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)  # 1) Correlation ID

    # 2) CORS (allow-list via env; the browser client lives on another origin in dev)
    origins = cfg.cors_origins_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # 3) GZip (listings can get long)
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    # 4) Rate limiter (SlowAPI middleware + 429 handler)
    install_rate_limiter(app)

    install_exception_handlers(app)

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router, prefix=cfg.API_PREFIX)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    @rate_limit_exempt()
    async def healthz() -> dict[str, bool]:
        """Liveness probe. No external checks."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @rate_limit_exempt()
    async def readyz() -> dict[str, object]:
        """
        Readiness probe.

        Returns:
            dict with per-dependency booleans and aggregated `ready` flag.
        """
        db_ok = await db_healthcheck(app.state.db_engine)
        s3 = app.state.s3_client
        storage_ok = bool(s3 is not None and await asyncio.to_thread(s3.ping))
        return {
            "ready": bool(db_ok and storage_ok),
            "checks": {"db": db_ok, "storage": storage_ok},
        }

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse({"name": cfg.PROJECT_NAME, "docs": app.docs_url or "", "version": cfg.VERSION})

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn reelvault.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reelvault.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
