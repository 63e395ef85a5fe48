"""
Shared web security helpers (FastAPI-agnostic utilities for routes).

Contains the CSRF logic used by every form-handling route: a per-session
token (`__csrf_token`) plus a same-origin Origin/Referer check. Keeping a
single implementation avoids security drift.
"""
from __future__ import annotations

import hmac
import os
import secrets
from typing import Optional
from urllib.parse import urlparse

from fastapi import Request


_CSRF_BY_SESSION: dict[str, str] = {}


def get_or_create_csrf_token(session_id: str) -> str:
    token = _CSRF_BY_SESSION.get(session_id)
    if not token:
        token = secrets.token_urlsafe(24)
        _CSRF_BY_SESSION[session_id] = token
    return token


def validate_csrf(session_id: Optional[str], form_value: Optional[str]) -> bool:
    if not session_id or not form_value:
        return False
    expected = _CSRF_BY_SESSION.get(session_id)
    if not expected:
        return False
    return hmac.compare_digest(expected, str(form_value))


def drop_csrf_token(session_id: Optional[str]) -> None:
    if session_id:
        _CSRF_BY_SESSION.pop(session_id, None)


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    host = p.hostname.lower()
    port = p.port if p.port is not None else (443 if scheme == "https" else 80)
    return scheme, host, int(port)


def _parse_server(request: Request) -> tuple[str, str, int]:
    trust_proxy = (os.getenv("TESSERA_TRUST_PROXY", "false") or "").lower() == "true"
    if trust_proxy:
        xf_proto = (request.headers.get("x-forwarded-proto") or request.url.scheme or "").split(",")[0].strip()
        xf_host = (request.headers.get("x-forwarded-host") or request.headers.get("host") or "").split(",")[0].strip()
        scheme = (xf_proto or request.url.scheme or "http").lower()
        if ":" in xf_host:
            host_only, port_str = xf_host.rsplit(":", 1)
            try:
                port = int(port_str)
            except ValueError:
                port = 443 if scheme == "https" else 80
            return scheme, host_only.lower(), port
        host = (xf_host or (request.url.hostname or "")).lower()
        port = 443 if scheme == "https" else 80
        return scheme, host, port

    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    port = int(request.url.port) if request.url.port else (443 if scheme == "https" else 80)
    return scheme, host, port


def is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients; the
      per-session token still has to match.
    Proxy awareness: Only trust X-Forwarded-* when TESSERA_TRUST_PROXY=true.
    """
    try:
        server = _parse_server(request)
        origin_val = request.headers.get("origin")
        if origin_val:
            return _parse_origin(origin_val) == server
        referer_val = request.headers.get("referer")
        if referer_val:
            return _parse_origin(referer_val) == server
        return True
    except ValueError:
        return False


def check_form_csrf(request: Request, session_id: Optional[str], form_value: Optional[str]) -> bool:
    """True when the request is same-origin and carries the session's token."""
    return is_same_origin(request) and validate_csrf(session_id, form_value)


__all__ = [
    "get_or_create_csrf_token",
    "validate_csrf",
    "drop_csrf_token",
    "is_same_origin",
    "check_form_csrf",
]
