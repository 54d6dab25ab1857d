# reelvault/core/config.py
from __future__ import annotations

"""
# ReelVault — Centralized Configuration (Pydantic v2)

Single `Settings` model with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; storage credentials are optional so imports
  never crash when the bucket is not configured yet.
- Robust URL normalization and CSV → list helpers.
- Services receive a `Settings` instance explicitly; the module-level
  `settings` singleton is only the default used by the app factory.

## Usage
    from reelvault.core.config import settings
"""

import logging
from typing import List, Literal, Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev

MiB = 1024 * 1024
GiB = 1024 * MiB

# Placeholder shipped in the sample .env
_BUCKET_PLACEHOLDER = "your_bucket_name"


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def _normalize_endpoint(v: str | None) -> str:
    """
    Reduce an endpoint to `scheme://host[:port]`.

    Accepts a bare host (`<account>.r2.cloudflarestorage.com`) or a full URL
    that may carry a bucket path. Returns "" when the value cannot be parsed.
    """
    s = (v or "").strip()
    if not s:
        return ""
    if not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    try:
        parts = urlsplit(s)
        host = parts.netloc
    except ValueError:
        log.error("Invalid R2_ENDPOINT: %s", v)
        return ""
    if not host:
        log.error("Invalid R2_ENDPOINT: %s", v)
        return ""
    return f"{parts.scheme}://{host}"


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Application settings sourced from environment / `.env`.

    Storage:
        - `R2_*` names are kept from the original deployment; any
          S3-compatible endpoint works.
        - `storage_configured` is False until endpoint and bucket are set.

    Quota:
        - `MAX_UPLOAD_BYTES` bounds a single payload.
        - `MONTHLY_QUOTA_BYTES` bounds the sum of uploads per calendar month (UTC).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "ReelVault API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True
    CORS_ORIGINS: Optional[str] = None  # CSV

    # ── Database ─────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./database.sqlite"
    DATABASE_ECHO: bool = False

    # ── Object storage (S3-compatible) ───────────────────────
    R2_ENDPOINT: Optional[str] = None
    R2_ACCESS_KEY_ID: Optional[str] = None
    R2_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    R2_BUCKET_NAME: Optional[str] = None
    R2_PUBLIC_URL: Optional[str] = None
    R2_REGION: str = "auto"
    S3_CONNECT_TIMEOUT: int = Field(5, ge=1, le=60)
    S3_READ_TIMEOUT: int = Field(60, ge=1, le=600)
    S3_MAX_ATTEMPTS: int = Field(3, ge=1, le=10)

    # ── Videos & quota ───────────────────────────────────────
    VIDEO_KEY_PREFIX: str = "videos/"
    VIDEO_EXTENSIONS: str = ".mp4,.mov,.avi,.mkv,.webm"
    MAX_UPLOAD_BYTES: int = Field(100 * MiB, ge=1)
    MONTHLY_QUOTA_BYTES: int = Field(10 * GiB, ge=1)
    STORAGE_HISTORY_MONTHS: int = Field(12, ge=1, le=120)

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("R2_ENDPOINT", mode="before")
    @classmethod
    def _normalize_r2_endpoint(cls, v) -> Optional[str]:
        return _normalize_endpoint(v) or None

    @field_validator("R2_BUCKET_NAME", mode="before")
    @classmethod
    def _strip_bucket_placeholder(cls, v) -> Optional[str]:
        s = str(v or "").replace(_BUCKET_PLACEHOLDER, "").strip()
        return s or None

    @field_validator("R2_PUBLIC_URL", mode="before")
    @classmethod
    def _normalize_public_url(cls, v) -> Optional[str]:
        s = str(v or "").strip().rstrip("/")
        return s or None

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _async_database_url(cls, v) -> str:
        """Upgrade sync DSNs to their async drivers."""
        s = str(v or "").strip()
        if s.startswith("postgres://"):
            s = s.replace("postgres://", "postgresql://", 1)
        if s.startswith("postgresql://"):
            return s.replace("postgresql://", "postgresql+asyncpg://", 1)
        if s.startswith("sqlite:///"):
            return s.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return s

    @field_validator("VIDEO_KEY_PREFIX", mode="before")
    @classmethod
    def _prefix_trailing_slash(cls, v) -> str:
        s = str(v or "videos/").strip().lstrip("/")
        return s if s.endswith("/") else f"{s}/"

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def storage_configured(self) -> bool:
        return bool(self.R2_ENDPOINT and self.R2_BUCKET_NAME)

    @property
    def public_base_url(self) -> str:
        return self.R2_PUBLIC_URL or ""

    @property
    def video_extensions(self) -> List[str]:
        """Lower-cased extension allow-list, each with a leading dot."""
        out: List[str] = []
        for ext in _split_csv(self.VIDEO_EXTENSIONS):
            ext = ext.lower()
            out.append(ext if ext.startswith(".") else f".{ext}")
        return out

    @property
    def cors_origins_list(self) -> List[str]:
        return _split_csv(self.CORS_ORIGINS)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# Singleton instance
settings = Settings()
