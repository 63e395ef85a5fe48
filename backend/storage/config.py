"""
Centralized storage configuration (database DSN, file store root, size limits).

Intent:
    Provide a single source of truth for the environment variables used by the
    Postgres-backed repositories (drafts, job sequences, file metadata) and the
    on-disk file store. Prevents drift across modules and enables simple testing.

Behavior:
    - get_database_dsn() returns TESSERA_DATABASE_URL or DATABASE_URL, or None
      when neither is set (callers fall back to in-memory implementations).
    - get_file_store_root() returns TESSERA_FILE_STORE_ROOT or None.
    - get_max_file_bytes() reads TESSERA_MAX_FILE_BYTES, clamped to 10 MiB.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

import os
from typing import Optional


FILE_STORE_ROOT_DEFAULT = os.path.join("var", "file_store")


def get_database_dsn() -> Optional[str]:
    """Return the configured Postgres DSN, if any.

    Env:
        TESSERA_DATABASE_URL – preferred; DATABASE_URL – generic fallback.
    """
    for name in ("TESSERA_DATABASE_URL", "DATABASE_URL"):
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def get_file_store_root(*, default: Optional[str] = None) -> Optional[str]:
    """Return the directory holding file store contents.

    Env:
        TESSERA_FILE_STORE_ROOT – optional; otherwise `default`.
    """
    value = (os.getenv("TESSERA_FILE_STORE_ROOT") or "").strip()
    return value or default


__all__ = [
    "FILE_STORE_ROOT_DEFAULT",
    "get_database_dsn",
    "get_file_store_root",
]

# --- Size limits --------------------------------------------------------------

def _parse_int_env(name: str, default: int, *, contract_max: int | None = None) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    if isinstance(contract_max, int) and contract_max > 0:
        value = min(value, contract_max)
    return value


def get_max_file_bytes() -> int:
    """Maximum size of a single stored file (default/clamped 10 MiB)."""
    contract_max = 10 * 1024 * 1024
    return _parse_int_env("TESSERA_MAX_FILE_BYTES", contract_max, contract_max=contract_max)


__all__ += [
    "get_max_file_bytes",
]
