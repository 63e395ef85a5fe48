"Tessera web app"
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from urllib.parse import quote

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from backend.authoring.file_editor import BinaryFileError
from backend.web import config as _cfg
from backend.web.auth_utils import SESSION_COOKIE_NAME
from backend.web.components.base import Component
from backend.web.routes.assessments import assessments_router
from backend.web.routes.auth import auth_router
from backend.web.routes.common import PRIVATE_HEADERS, error_page, html_page
from backend.web.routes.file_editor import file_editor_router
from backend.web.routes.jobs import jobs_router
from backend.web.routes.questions import questions_router
from backend.web.routes.workspaces import workspaces_router
from backend.web.wiring import get_session_store


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via TESSERA_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("TESSERA_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Fail fast on insecure production configuration.
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("tessera.web")

app = FastAPI(title="Tessera", description="Course content and question platform", version="0.1.0")

# --- Static Files ---------------------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# --- Auth Middleware ------------------------------------------------------------


def _is_public_path(path: str) -> bool:
    return path.startswith(("/auth/", "/static/")) or path in ("/health", "/favicon.ico")


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    path = request.url.path
    if _is_public_path(path):
        return await call_next(request)

    sid = request.cookies.get(SESSION_COOKIE_NAME)
    rec = get_session_store().get(sid) if sid else None
    if rec is None:
        if request.method == "GET":
            target = path + (f"?{request.url.query}" if request.url.query else "")
            return RedirectResponse(url=f"/auth/login?next={quote(target)}", status_code=302)
        return Response(status_code=401, headers=dict(PRIVATE_HEADERS))

    # Minimal, read-only user context for downstream handlers.
    request.state.user = {
        "user_id": rec.user_id,
        "uid": rec.uid,
        "name": rec.name,
        "is_administrator": rec.is_administrator,
    }
    return await call_next(request)


# --- Security Headers Middleware ------------------------------------------------


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if _cfg._is_prod_like(_cfg.get_environment()):
        # No inline code in production.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


# --- Error Pages ----------------------------------------------------------------


@app.exception_handler(HTTPException)
async def http_exception_page(request: Request, exc: HTTPException):
    return error_page(request, exc.status_code, str(exc.detail))


@app.exception_handler(BinaryFileError)
async def binary_file_page(request: Request, exc: BinaryFileError):
    logger.warning("binary file edit refused path=%s", request.url.path)
    return error_page(request, 500, str(exc))


@app.exception_handler(Exception)
async def unexpected_error_page(request: Request, exc: Exception):
    logger.exception("unhandled error path=%s", request.url.path)
    return error_page(request, 500, "Internal server error")


# --- Routes ---------------------------------------------------------------------

app.include_router(auth_router)
app.include_router(questions_router)
app.include_router(assessments_router)
app.include_router(workspaces_router)
app.include_router(file_editor_router)
app.include_router(jobs_router)


@app.get("/health")
async def health_check():
    # Security: include no-store to avoid caching any runtime status.
    return JSONResponse({"status": "healthy"}, headers=dict(PRIVATE_HEADERS))


@app.get("/", response_class=HTMLResponse)
async def home_page(request: Request):
    user = getattr(request.state, "user", None) or {}
    content = (
        '<div class="container">'
        f"<h1>Welcome, {Component.escape(user.get('name') or user.get('uid'))}</h1>"
        "<p>Open a course, question or assessment link to get started.</p>"
        "</div>"
    )
    return html_page(request, title="Home", content=content)
