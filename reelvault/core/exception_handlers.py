from __future__ import annotations

"""
JSON exception handlers.

Registered by `reelvault.main.create_app`. Every error leaves the API as
`{"error": <message>, "type": <class>, "request_id": <id>, "details"?: {...}}`
so the browser client can always show `body.error`.
"""

from typing import Any, Dict

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from reelvault.core.exceptions import AppException
from reelvault.middleware.request_id import get_request_id


def _error(message: str, error_type: str, status_code: int, request: Request, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {
        "error": message,
        "type": error_type,
        "request_id": get_request_id(request) or "N/A",
    }
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    if exc.status_code >= 500:
        logger.error("{} on {} {}: {} | details={}", exc.error_type, request.method, request.url.path, exc.message, exc.details)
    else:
        logger.info("{} on {} {}: {}", exc.error_type, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(request_id=get_request_id(request)),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error(detail, "HTTPException", exc.status_code, request)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _error(
        "Invalid request",
        "ValidationError",
        status.HTTP_400_BAD_REQUEST,
        request,
        details={"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals; the traceback goes to the log.
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return _error(
        "An unexpected error occurred.",
        "InternalServerError",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        request,
    )


def install_exception_handlers(app) -> None:
    """Register the handlers on a FastAPI app (order: most specific first)."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "install_exception_handlers",
]
