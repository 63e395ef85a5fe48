"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep auth endpoints in a dedicated router. Sign-in uses a development
    login form (uid/name) that creates a server-side session; it is disabled
    in production-like environments (see `backend.web.config`).

Notes:
    - Sessions are opaque: the cookie carries only the session id.
    - Redirect targets are restricted to in-app paths.
"""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from backend.web.auth_utils import SESSION_COOKIE_NAME, cookie_opts
from backend.web.components import LoginPage
from backend.web.config import dev_login_enabled, get_environment
from backend.web.routes.common import error_page, html_page, read_form, session_id
from backend.web.routes.security import drop_csrf_token, is_same_origin, validate_csrf
from backend.web.wiring import get_courses_repo, get_session_store


auth_router = APIRouter(tags=["Auth"])
logger = logging.getLogger("tessera.web.auth")

# Disallow double slashes and path traversal (".."), allow dots in names
INAPP_PATH_PATTERN = re.compile(r"^(?!.*//)(?!.*\.\.)/[A-Za-z0-9._\-/?=&%]*$")
MAX_INAPP_REDIRECT_LEN = 256
SESSION_TTL_SECONDS = 8 * 3600


def _safe_next(value: str | None) -> str:
    if value and len(value) <= MAX_INAPP_REDIRECT_LEN and INAPP_PATH_PATTERN.match(value):
        return value
    return "/"


@auth_router.get("/auth/login", response_class=HTMLResponse)
async def auth_login(request: Request, next: str | None = None):
    """Render the login page (dev login form when enabled)."""
    content = LoginPage(dev_login=dev_login_enabled(), next_url=_safe_next(next)).render()
    return html_page(request, title="Log in", content=content)


@auth_router.post("/auth/dev-login")
async def auth_dev_login(request: Request):
    """
    Create a session for the given uid without a password (development only).

    Behavior:
        - 404 when dev login is disabled.
        - 403 for cross-origin posts.
        - Creates the user on first login, sets the session cookie and
          redirects (303) to `next` or `/`.
    """
    if not dev_login_enabled():
        return error_page(request, 404, "Not found")
    if not is_same_origin(request):
        return error_page(request, 403, "csrf_violation")
    form = await read_form(request)
    uid = (form.get("uid") or "").strip().lower()
    if not uid:
        content = LoginPage(dev_login=True, next_url=_safe_next(form.get("next")), error="UID is required").render()
        return html_page(request, title="Log in", content=content, status_code=400)
    repo = get_courses_repo()
    user = repo.get_or_create_user(uid=uid, name=(form.get("name") or "").strip() or uid, uin=form.get("uin") or None)
    rec = get_session_store().create(
        user_id=user.user_id,
        uid=user.uid,
        name=user.name,
        is_administrator=user.is_administrator,
        ttl_seconds=SESSION_TTL_SECONDS,
    )
    logger.info("dev login user_id=%s", user.user_id)
    response = RedirectResponse(url=_safe_next(form.get("next")), status_code=303)
    opts = cookie_opts(get_environment())
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=rec.session_id,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=SESSION_TTL_SECONDS,
    )
    return response


@auth_router.post("/auth/logout")
async def auth_logout(request: Request):
    """Delete the server-side session and clear the cookie (CSRF-checked)."""
    sid = session_id(request)
    form = await read_form(request)
    if sid and not (is_same_origin(request) and validate_csrf(sid, form.get("__csrf_token"))):
        return error_page(request, 403, "csrf_violation")
    if sid:
        get_session_store().delete(sid)
        drop_csrf_token(sid)
    response = RedirectResponse(url="/auth/login", status_code=303)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    response.headers["Cache-Control"] = "private, no-store"
    return response
