"""
Test DB utilities: reachability check plus schema bootstrap.

Rationale:
    The Postgres-backed stores (drafts, job sequences, file metadata) are
    exercised against a live database only when one is configured. Without a
    DSN, or when the server is unreachable, the tests are skipped.

Env:
    TESSERA_DATABASE_URL or DATABASE_URL (same lookup as the app).
"""
from __future__ import annotations

from pathlib import Path

import pytest

from backend.storage.config import get_database_dsn


SCHEMA_PATH = Path(__file__).resolve().parents[2] / "db" / "schema.sql"


def require_db_or_skip() -> str:
    """Return a reachable DSN with the schema applied, or skip the test."""
    try:
        import psycopg  # type: ignore
    except ImportError:
        pytest.skip("psycopg not available")

    dsn = get_database_dsn()
    if not dsn:
        pytest.skip("Database not configured; set TESSERA_DATABASE_URL to run DB tests")
    try:
        with psycopg.connect(dsn, connect_timeout=2) as conn:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
    except psycopg.OperationalError as exc:
        pytest.skip(f"Database not reachable ({exc.__class__.__name__})")
    return dsn
