"""Test environment defaults shared by every test package."""
from __future__ import annotations

import os

# Must run before ``awards`` is imported: settings and the engine are module level.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("ENABLE_TRACING", "false")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com")
os.environ.setdefault("BLOCKED_EMAIL_DOMAINS", "blocked.example")
os.environ.setdefault("IDENTITY_PROVIDER_SECRET", "test-identity-secret")
os.environ.setdefault("SUMMARIZER_API_KEY", "test-key")
