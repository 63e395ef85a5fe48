"""
Configuration and startup security checks for Tessera.

Why: Course platforms hold student data and instructor-only content. This
module provides a single guard that enforces minimal production safety
constraints without burdening local development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def get_environment() -> str:
    return (os.getenv("TESSERA_ENV", "dev") or "dev").lower()


def dev_login_enabled() -> bool:
    """Dev login form: on by default outside prod-like envs, never in prod."""
    if _is_prod_like(get_environment()):
        return False
    flag = (os.getenv("TESSERA_ENABLE_DEV_LOGIN", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - TESSERA_ENABLE_DEV_LOGIN must not be switched on.
    - Database DSNs must not explicitly disable TLS.
    - A configured database requires TESSERA_FILE_STORE_ROOT (draft contents
      would otherwise be written to a relative working directory).
    """

    env = get_environment()
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Dev login is a passwordless backdoor
    if (os.getenv("TESSERA_ENABLE_DEV_LOGIN", "false") or "").strip().lower() in ("1", "true", "yes"):
        raise SystemExit(
            "Refusing to start: TESSERA_ENABLE_DEV_LOGIN must be false in production/staging."
        )

    # 2) Postgres TLS: basic guard to avoid explicit disable
    for key in ("TESSERA_DATABASE_URL", "DATABASE_URL"):
        dsn = os.getenv(key, "")
        if "sslmode=disable" in dsn:
            raise SystemExit(
                f"Refusing to start: {key} contains sslmode=disable in production. Use sslmode=require or verify TLS."
            )

    # 3) File store root must be explicit when the DB-backed store is used
    has_db = bool((os.getenv("TESSERA_DATABASE_URL") or os.getenv("DATABASE_URL") or "").strip())
    if has_db and not (os.getenv("TESSERA_FILE_STORE_ROOT") or "").strip():
        raise SystemExit(
            "Refusing to start: TESSERA_FILE_STORE_ROOT is required in production when a database is configured."
        )
