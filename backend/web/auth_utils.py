"""
Shared authentication utilities.

Why:
    Avoid duplicating environment-dependent cookie policy logic across modules
    (e.g., main app and auth router).

Design:
    The helpers are framework-agnostic and pure: they accept an environment
    string and return the corresponding flags. Callers decide where the
    environment comes from (e.g., settings object).
"""

from __future__ import annotations

SESSION_COOKIE_NAME = "tessera_session"


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags.

    Returns a mapping with keys:
      - secure: True outside dev/test (plain-http dev servers drop Secure cookies)
      - samesite: "lax"
    """
    env = (environment or "").lower()
    return {"secure": env not in ("dev", "test"), "samesite": "lax"}
