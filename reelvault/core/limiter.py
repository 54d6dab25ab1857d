from __future__ import annotations

"""
ReelVault — HTTP Rate Limiting (SlowAPI)
========================================

Highlights
----------
- Per-client-IP keying (X-Forwarded-For → X-Real-IP → client.host).
- Probes are marked exempt in the app factory.
- Test/CI friendly: `RATE_LIMIT_ENABLED=false` disables the limiter entirely,
  `RATE_LIMIT_TEST_BYPASS=1` keeps it installed but exempts every request.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "120/minute"
RATELIMIT_STORAGE_URI        default: "" (falls back to "memory://")
RATE_LIMIT_TEST_BYPASS       default: ""

Usage
-----
    from reelvault.core.limiter import install_rate_limiter, rate_limit

    @router.post("/upload")
    @rate_limit("10/minute")
    async def upload(request: Request): ...
"""

import os
from typing import Callable, List, Optional

from dotenv import load_dotenv
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

load_dotenv()

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "120/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip()

def _client_ip(request: Request) -> str:
    """Best-effort client IP: X-Forwarded-For (first hop), X-Real-IP, client.host."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return get_remote_address(request) or "unknown"


def rate_limit_key(request: Request) -> str:
    return f"ip:{_client_ip(request)}"


def _test_bypass() -> bool:
    # Re-read at request time so tests can toggle it without reloading.
    return os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in {"1", "true", "yes", "on"}


def _default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=_default_limits(),
    headers_enabled=True,
    storage_uri=STORAGE_URI or "memory://",
    enabled=RATE_LIMIT_ENABLED,
)


def rate_limit(*limits: str) -> Callable:
    """
    Apply per-route limits.

    The decorated endpoint must accept `request: Request` and return a
    `Response` (SlowAPI injects the X-RateLimit headers into it).
    """
    selected = list(limits) if limits else _default_limits()

    def _apply(fn: Callable) -> Callable:
        if not RATE_LIMIT_ENABLED:
            return fn
        for limit_value in reversed(selected):
            fn = limiter.limit(limit_value, exempt_when=_test_bypass)(fn)
        return fn

    return _apply


def rate_limit_exempt() -> Callable:
    """Explicitly exempt a route from limiting."""
    return limiter.exempt


def install_rate_limiter(app, *, enabled: Optional[bool] = None) -> None:
    """Attach the SlowAPI middleware and the 429 handler."""
    if not (RATE_LIMIT_ENABLED if enabled is None else enabled):
        logger.info("RateLimiter disabled by env; middleware not installed")
        return
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info("SlowAPI middleware installed | default={} | storage={}", _default_limits(), STORAGE_URI or "memory://")
