"""
Auth middleware, dev login/logout and app-wide headers.
"""
from __future__ import annotations

import pytest

from backend.web import main
from backend.web.auth_utils import SESSION_COOKIE_NAME, cookie_opts
from backend.web.routes.auth import _safe_next
from backend.web.wiring import get_courses_repo, get_session_store
from utils.fixtures import client_for, extract_input_value, login


pytestmark = pytest.mark.anyio("asyncio")


async def test_health_is_public_and_not_cached():
    async with client_for(main.app) as c:
        r = await c.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}
    assert r.headers.get("Cache-Control") == "private, no-store"


async def test_anonymous_get_redirects_to_login_with_next():
    async with client_for(main.app) as c:
        r = await c.get("/pl/course/c-1/jobSequence/s-1", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/auth/login?next=/pl/course/c-1/jobSequence/s-1"


async def test_login_redirect_quotes_next_and_keeps_query():
    async with client_for(main.app) as c:
        r = await c.get("/pl/course/c-1/question/q-1/preview?variant_id=v-1", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/auth/login?next=/pl/course/c-1/question/q-1/preview%3Fvariant_id%3Dv-1"
        login_page = await c.get(r.headers["location"])
    assert extract_input_value(login_page.text, "next") == "/pl/course/c-1/question/q-1/preview?variant_id=v-1"


async def test_anonymous_post_is_401():
    async with client_for(main.app) as c:
        r = await c.post("/pl/course/c-1/file_edit/x.txt", data={"__action": "save_and_sync"})
    assert r.status_code == 401


async def test_unknown_session_is_treated_as_anonymous():
    async with client_for(main.app, "not-a-session") as c:
        r = await c.get("/", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"].startswith("/auth/login")


async def test_security_headers_are_set():
    async with client_for(main.app) as c:
        r = await c.get("/auth/login")
    assert r.status_code == 200
    assert r.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'self'" in r.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" in r.headers


async def test_dev_login_creates_user_and_session_cookie():
    async with client_for(main.app) as c:
        r = await c.post(
            "/auth/dev-login",
            data={"uid": "Alice@Example.com", "name": "Alice", "next": "/"},
            follow_redirects=False,
        )
        assert r.status_code == 303
        assert r.headers["location"] == "/"
        sid = r.cookies.get(SESSION_COOKIE_NAME)
        assert sid
        home = await c.get("/")
    assert home.status_code == 200
    assert "Welcome, Alice" in home.text
    user = get_courses_repo().get_user_by_uid("alice@example.com")
    assert user is not None and user.name == "Alice"
    assert get_session_store().get(sid).user_id == user.user_id


async def test_dev_login_requires_uid():
    async with client_for(main.app) as c:
        r = await c.post("/auth/dev-login", data={"uid": " "})
    assert r.status_code == 400
    assert "UID is required" in r.text


async def test_dev_login_rejects_cross_origin_post():
    async with client_for(main.app) as c:
        r = await c.post(
            "/auth/dev-login", data={"uid": "a@example.com"}, headers={"Origin": "http://evil.example"}
        )
    assert r.status_code == 403
    assert get_courses_repo().get_user_by_uid("a@example.com") is None


async def test_dev_login_disabled_by_flag(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TESSERA_ENABLE_DEV_LOGIN", "false")
    async with client_for(main.app) as c:
        page = await c.get("/auth/login")
        r = await c.post("/auth/dev-login", data={"uid": "a@example.com"})
    assert "Sign-in is not configured" in page.text
    assert r.status_code == 404


async def test_logout_requires_csrf_token_and_clears_session():
    sid = login("bob@example.com", "Bob")
    async with client_for(main.app, sid) as c:
        home = await c.get("/")
        token = extract_input_value(home.text, "__csrf_token")
        assert token

        denied = await c.post("/auth/logout", data={"__csrf_token": "wrong"})
        assert denied.status_code == 403
        assert get_session_store().get(sid) is not None

        r = await c.post("/auth/logout", data={"__csrf_token": token}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth/login"
    assert get_session_store().get(sid) is None


def test_safe_next_only_allows_in_app_paths():
    assert _safe_next("/pl/course/1/question/2/preview") == "/pl/course/1/question/2/preview"
    assert _safe_next("https://evil.example/") == "/"
    assert _safe_next("//evil.example") == "/"
    assert _safe_next("/a/../b") == "/"
    assert _safe_next(None) == "/"


def test_cookie_opts_secure_outside_dev_and_test():
    assert cookie_opts("dev")["secure"] is False
    assert cookie_opts("test")["secure"] is False
    assert cookie_opts("prod") == {"secure": True, "samesite": "lax"}
