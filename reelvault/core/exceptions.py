# reelvault/core/exceptions.py
from __future__ import annotations

"""
ReelVault — Application Exceptions
==================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets services raise typed errors with structured metadata, rendered by
`reelvault.core.exception_handlers` as a JSON body.

Taxonomy
--------
- `ValidationError`      400  bad or missing input
- `QuotaExceeded`        400  monthly upload quota would be exceeded
- `PayloadTooLarge`      400  single payload above the size ceiling
- `StorageUnavailable`   500  object store unreachable / misconfigured / failed
- `PersistenceError`     500  local relational store write failed

Usage
-----
    raise QuotaExceeded(used=used, limit=limit, size=size)

    # Or a typed app error directly
    raise AppException(status_code=409, message="Conflict", details={"key": key})
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "ValidationError",
    "QuotaExceeded",
    "PayloadTooLarge",
    "StorageUnavailable",
    "PersistenceError",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code.
    message : str
        Human-readable error message (serialized as `error`).
    details : dict | None
        Machine-readable details (keys, saga state, limits).
    """

    default_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        msg = message or self.default_message
        super().__init__(status_code=status_code or self.default_status, detail=msg, headers=headers)
        self.message: str = msg
        self.details: Optional[Dict[str, Any]] = details

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_body(self, *, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the JSON error body used by the handlers."""
        body: Dict[str, Any] = {
            "error": self.message,
            "type": self.error_type,
            "request_id": request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        return body


# ──────────────────────────────────────────────────────────────
# 🧾 Client errors (400)
# ──────────────────────────────────────────────────────────────
class ValidationError(AppException):
    """Bad or missing input."""

    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class QuotaExceeded(AppException):
    """Raised when an upload would push the month's usage over the limit."""

    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, *, used: int, limit: int, size: int) -> None:
        gib = limit / (1024 ** 3)
        super().__init__(
            f"Monthly upload quota exceeded ({gib:g}GB limit). Please try again next month.",
            details={"used": used, "limit": limit, "size": size},
        )


class PayloadTooLarge(AppException):
    """Raised when a single payload exceeds the configured ceiling."""

    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, *, max_bytes: int, size: Optional[int] = None) -> None:
        mb = max_bytes / (1024 ** 2)
        details: Dict[str, Any] = {"max_bytes": max_bytes}
        if size is not None:
            details["size"] = size
        super().__init__(f"File too large. Maximum size is {mb:g}MB.", details=details)


# ──────────────────────────────────────────────────────────────
# 💥 Server-side errors (500)
# ──────────────────────────────────────────────────────────────
class StorageUnavailable(AppException):
    """Object store unreachable, misconfigured, or an operation failed."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Object storage is not configured. Please check your environment variables."


class PersistenceError(AppException):
    """Local relational store write failed."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to write to the local database"
