"""
Helpers shared by the SSR route modules.

Keeps session/user lookups, CSRF token access and private (no-store) page
rendering in one place so every router behaves the same.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from backend.courses.repo import User
from backend.web.auth_utils import SESSION_COOKIE_NAME
from backend.web.components import ErrorPanel, Layout
from backend.web.routes.security import get_or_create_csrf_token
from backend.web.wiring import get_courses_repo


PRIVATE_HEADERS = {"Cache-Control": "private, no-store"}


def session_id(request: Request) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE_NAME)


def csrf_token(request: Request) -> str:
    sid = session_id(request)
    return get_or_create_csrf_token(sid) if sid else ""


def current_user(request: Request) -> Optional[User]:
    """Resolve the session user against the platform repository."""
    ctx = getattr(request.state, "user", None)
    if not ctx:
        return None
    return get_courses_repo().get_user(str(ctx.get("user_id") or ""))


def html_page(request: Request, *, title: str, content: str, status_code: int = 200) -> HTMLResponse:
    ctx: Optional[Dict[str, Any]] = getattr(request.state, "user", None)
    body = Layout(title=title, content=content, user=ctx, csrf_token=csrf_token(request) if ctx else None).render()
    return HTMLResponse(body, status_code=status_code, headers=dict(PRIVATE_HEADERS))


def error_page(request: Request, status_code: int, message: str) -> HTMLResponse:
    return html_page(
        request,
        title=f"Error {status_code}",
        content=ErrorPanel(status_code=status_code, message=message).render(),
        status_code=status_code,
    )


def private_json(payload: Any, *, status_code: int = 200) -> JSONResponse:
    """Return a JSONResponse with cache disabled for shared caches and browsers."""
    return JSONResponse(content=payload, status_code=status_code, headers=dict(PRIVATE_HEADERS))


def private_bytes(contents: bytes, *, media_type: str = "text/plain; charset=utf-8") -> Response:
    return Response(content=contents, media_type=media_type, headers=dict(PRIVATE_HEADERS))


def empty_not_found() -> Response:
    return Response(content=b"", status_code=404, headers=dict(PRIVATE_HEADERS))


async def read_form(request: Request) -> Dict[str, str]:
    form = await request.form()
    return {k: str(v) for k, v in form.items()}


__all__ = [
    "PRIVATE_HEADERS",
    "session_id",
    "csrf_token",
    "current_user",
    "html_page",
    "error_page",
    "private_json",
    "private_bytes",
    "empty_not_found",
    "read_form",
]
