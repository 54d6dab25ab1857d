# tests/conftest.py
"""
Global test bootstrap
- Pins the environment BEFORE reelvault is imported (in-memory SQLite,
  no rate limiting, no log files, no real bucket).
- Pulls in the fixture modules (db, fake object store, app + client).
"""

from __future__ import annotations

import os

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set before importing the app so module-level singletons see it)
# ──────────────────────────────────────────────────────────────────────────────
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATELIMIT_STORAGE_URI"] = "memory://"
os.environ["LOG_TO_FILE"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["R2_ENDPOINT"] = ""
os.environ["R2_BUCKET_NAME"] = ""
os.environ["R2_PUBLIC_URL"] = ""

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *   # noqa: F401,F403,E402
from tests.fixtures.s3 import *   # noqa: F401,F403,E402
from tests.fixtures.app import *  # noqa: F401,F403,E402
