# reelvault/storage/s3.py
from __future__ import annotations

"""
🧊 ReelVault • S3 Gateway
=========================

Thin boto3 wrapper over the one bucket that holds every video. Works with any
S3-compatible endpoint (Cloudflare R2, MinIO, LocalStack, AWS).

🎯 Goals
--------
- Explicit config: built from a `Settings` instance, never from globals.
- Path-style addressing (R2/MinIO friendly), SigV4, bounded retries and
  short connect timeout.
- Keys go to the store byte-for-byte; only an empty key is refused.
- Every failure surfaces as `S3StorageError`; a missing object is flagged
  with `not_found=True` so callers can treat deletes as idempotent.
- Zero secret leakage in logs and `repr`.

🔗 Contract
-----------
- `S3Client.list_objects()`  → list[ObjectInfo] (single ListObjectsV2 call)
- `S3Client.put_bytes(key, data, content_type=...)`
- `S3Client.copy(src_key, dst_key)`
- `S3Client.delete(key)`
- `S3Client.head(key)` / `exists(key)`
- `S3Client.public_url(key)` → "" when no public base URL is configured
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import boto3
import botocore.exceptions
from botocore.config import Config as BotoConfig
from loguru import logger

from reelvault.core.config import Settings

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


# ─────────────────────────────────────────────────────────────────────────────
# 🧱 Exceptions & value objects
# ─────────────────────────────────────────────────────────────────────────────

class S3StorageError(RuntimeError):
    """Raised when a storage operation fails (network, auth, policy, missing object)."""

    def __init__(self, message: str, *, not_found: bool = False) -> None:
        super().__init__(message)
        self.not_found = not_found


@dataclass(frozen=True)
class ObjectInfo:
    key: str
    size: int
    last_modified: Optional[datetime]


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Key validation
# ─────────────────────────────────────────────────────────────────────────────

def _require_key(key: str) -> str:
    """
    Return `key` unchanged, or raise when it is empty.

    Listed keys come back from clients verbatim, so they are never rewritten:
    `videos//a.mp4` and `videos/a.mp4` are two different objects.
    """
    if not key:
        raise S3StorageError("Invalid storage key: empty")
    return key


def _error_code(exc: botocore.exceptions.ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _wrap(action: str, exc: Exception) -> S3StorageError:
    if isinstance(exc, botocore.exceptions.ClientError):
        code = _error_code(exc)
        return S3StorageError(f"Failed to {action}: {exc}", not_found=code in _NOT_FOUND_CODES)
    return S3StorageError(f"Failed to {action}: {exc}")


# ─────────────────────────────────────────────────────────────────────────────
# 📦 S3 Client
# ─────────────────────────────────────────────────────────────────────────────

class S3Client:
    """
    High-level S3 wrapper bound to a single bucket.

    Parameters
    ----------
    cfg : Settings
        Source of endpoint, bucket, credentials, region, public URL and timeouts.
    client : botocore client | None
        Pre-built client (tests pass a stubbed one).

    Raises
    ------
    S3StorageError
        When endpoint or bucket is not configured.
    """

    def __init__(self, cfg: Settings, *, client: Any = None) -> None:
        if not cfg.storage_configured:
            raise S3StorageError("Object storage is not configured (R2_ENDPOINT / R2_BUCKET_NAME)")

        self.bucket: str = cfg.R2_BUCKET_NAME or ""
        self._public_base = cfg.public_base_url

        if client is None:
            boto_cfg = BotoConfig(
                signature_version="s3v4",
                retries={"max_attempts": cfg.S3_MAX_ATTEMPTS, "mode": "standard"},
                connect_timeout=cfg.S3_CONNECT_TIMEOUT,
                read_timeout=cfg.S3_READ_TIMEOUT,
                s3={"addressing_style": "path"},
            )
            client_kwargs: Dict[str, Any] = {
                "config": boto_cfg,
                "endpoint_url": cfg.R2_ENDPOINT,
                "region_name": cfg.R2_REGION,
            }
            ak = cfg.R2_ACCESS_KEY_ID
            sk = cfg.R2_SECRET_ACCESS_KEY.get_secret_value() if cfg.R2_SECRET_ACCESS_KEY else None
            if ak and sk:
                client_kwargs["aws_access_key_id"] = ak
                client_kwargs["aws_secret_access_key"] = sk
            try:
                client = boto3.client("s3", **client_kwargs)
            except Exception as e:  # pragma: no cover
                raise S3StorageError(f"Failed to create S3 client: {e}") from e

        self.client = client
        self._repr = f"S3Client(bucket={self.bucket}, endpoint={'yes' if cfg.R2_ENDPOINT else 'no'})"

    # ────────────────────────────────────────────────────────────────────────
    # 📄 Listing
    # ────────────────────────────────────────────────────────────────────────

    def list_objects(self) -> List[ObjectInfo]:
        """
        List the bucket in **one** ListObjectsV2 call (no prefix, no
        continuation). Buckets above the store's page size are truncated.
        """
        try:
            resp = self.client.list_objects_v2(Bucket=self.bucket)
        except Exception as e:
            raise _wrap("list objects", e) from e

        items = [
            ObjectInfo(
                key=obj["Key"],
                size=int(obj.get("Size") or 0),
                last_modified=obj.get("LastModified"),
            )
            for obj in resp.get("Contents") or []
            if obj.get("Key")
        ]
        if resp.get("IsTruncated"):
            logger.warning("Bucket listing truncated at {} objects", len(items))
        logger.debug("Found {} objects in bucket {}", len(items), self.bucket)
        return items

    # ────────────────────────────────────────────────────────────────────────
    # 🚀 Writes
    # ────────────────────────────────────────────────────────────────────────

    def put_bytes(self, key: str, data: bytes, *, content_type: str) -> None:
        """Upload a payload held in memory."""
        k = _require_key(key)
        try:
            self.client.put_object(Bucket=self.bucket, Key=k, Body=data, ContentType=content_type)
        except Exception as e:
            raise _wrap("upload object", e) from e

    def copy(self, src_key: str, dst_key: str) -> None:
        """Server-side copy inside the bucket."""
        src = _require_key(src_key)
        dst = _require_key(dst_key)
        try:
            self.client.copy_object(
                Bucket=self.bucket,
                CopySource={"Bucket": self.bucket, "Key": src},
                Key=dst,
            )
        except Exception as e:
            raise _wrap("copy object", e) from e

    def delete(self, key: str) -> None:
        """
        Delete one object.

        S3 answers 204 for missing keys; stores that answer NoSuchKey raise
        `S3StorageError(not_found=True)` so the caller can decide.
        """
        k = _require_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=k)
        except Exception as e:
            raise _wrap("delete object", e) from e

    # ────────────────────────────────────────────────────────────────────────
    # 🔎 Metadata helpers
    # ────────────────────────────────────────────────────────────────────────

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        """HEAD the object; None when it does not exist."""
        k = _require_key(key)
        try:
            return dict(self.client.head_object(Bucket=self.bucket, Key=k) or {})
        except botocore.exceptions.ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise _wrap("head object", e) from e
        except Exception as e:
            raise _wrap("head object", e) from e

    def exists(self, key: str) -> bool:
        return self.head(key) is not None

    def ping(self) -> bool:
        """HEAD the bucket (readiness probe)."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except Exception as e:
            logger.warning("head_bucket failed: {}", e)
            return False

    # ────────────────────────────────────────────────────────────────────────
    # 🌐 Public URL
    # ────────────────────────────────────────────────────────────────────────

    def public_url(self, key: str) -> str:
        """`<R2_PUBLIC_URL>/<key>`, or "" when previews are not public."""
        if not self._public_base:
            return ""
        return f"{self._public_base}/{quote(key, safe='/')}"

    def __repr__(self) -> str:  # pragma: no cover
        return self._repr


__all__ = ["S3Client", "S3StorageError", "ObjectInfo"]
