"""
Object key rules.

Every key the service writes lives under one namespace prefix (`videos/`) and
its name part only contains `[A-Za-z0-9._-]`.
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable

from reelvault.core.exceptions import ValidationError

DEFAULT_PREFIX = "videos/"

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9.\-]")


def sanitize_name(name: str) -> str:
    """Replace every character outside `[A-Za-z0-9.-]` with `_`."""
    return _UNSAFE_RE.sub("_", name or "")


def extension_of(key: str) -> str:
    """Extension of the last path segment, dot included ("" when none)."""
    return posixpath.splitext(key)[1]


def is_video_key(key: str, extensions: Iterable[str]) -> bool:
    return extension_of(key).lower() in set(extensions)


def display_name(key: str) -> str:
    return key.rsplit("/", 1)[-1] or key


def ensure_namespaced(key: str, prefix: str = DEFAULT_PREFIX) -> str:
    if not key or not key.startswith(prefix):
        raise ValidationError("Invalid key", details={"key": key, "prefix": prefix})
    return key


def build_upload_key(filename: str, now_ms: int, prefix: str = DEFAULT_PREFIX) -> str:
    """`videos/<epoch-ms>-<sanitized filename>`; the timestamp keeps same-name uploads apart."""
    return f"{prefix}{now_ms}-{sanitize_name(filename)}"


def build_renamed_key(old_key: str, new_name: str, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Key for a video renamed to `new_name`.

    The old key's extension is kept: it is appended unless the sanitized name
    already ends with it (case-sensitive).
        >>> build_renamed_key("videos/1690000000-clip.mp4", "My Clip!!")
        'videos/My_Clip__.mp4'
    """
    ext = extension_of(old_key)
    safe = sanitize_name(new_name)
    if not safe.endswith(ext):
        safe += ext
    return f"{prefix}{safe}"


__all__ = [
    "DEFAULT_PREFIX",
    "sanitize_name",
    "extension_of",
    "is_video_key",
    "display_name",
    "ensure_namespaced",
    "build_upload_key",
    "build_renamed_key",
]
