"""
End-to-end smoke test against a running server: dev login, session cookie,
logout, and (optionally) that a public preview variant stays private to its
creator.

How to run locally:
  1) Start the app with dev login enabled and a course loaded, e.g.
     `TESSERA_COURSE_DIRS=/path/to/course uvicorn backend.web.main:app --port 8100`
  2) Export: `export RUN_E2E=1` (and optionally E2E_PUBLIC_PREVIEW_URL, the
     path of a publicly shared question's preview page)
  3) Run tests: `pytest -q backend/tests_e2e`
"""
from __future__ import annotations

import os
import re
import uuid

import pytest
import requests


WEB_BASE = os.getenv("WEB_BASE", "http://localhost:8100").rstrip("/")
PUBLIC_PREVIEW_URL = os.getenv("E2E_PUBLIC_PREVIEW_URL", "")

pytestmark = pytest.mark.e2e


def _require_server() -> None:
    try:
        r = requests.get(f"{WEB_BASE}/health", timeout=3)
    except requests.RequestException as exc:
        pytest.fail(f"E2E dependency not reachable: GET {WEB_BASE}/health -> {exc.__class__.__name__}")
    assert r.status_code == 200, r.text


def _login(uid: str) -> requests.Session:
    s = requests.Session()
    r = s.post(
        f"{WEB_BASE}/auth/dev-login",
        data={"uid": uid, "name": uid.split("@")[0], "next": "/"},
        allow_redirects=False,
        timeout=5,
    )
    assert r.status_code == 303, r.text
    return s


def _hidden(html: str, name: str) -> str:
    m = re.search(rf'name="{re.escape(name)}" value="([^"]*)"', html)
    assert m, f"hidden input {name} missing"
    return m.group(1)


def test_dev_login_session_and_logout():
    _require_server()
    uid = f"e2e-{uuid.uuid4().hex[:8]}@example.com"
    s = _login(uid)
    home = s.get(f"{WEB_BASE}/", timeout=5)
    assert home.status_code == 200
    assert f'data-uid="{uid}"' in home.text
    assert home.headers.get("Cache-Control") == "private, no-store"

    r = s.post(f"{WEB_BASE}/auth/logout", data={"__csrf_token": _hidden(home.text, "__csrf_token")},
               allow_redirects=False, timeout=5)
    assert r.status_code == 303
    after = s.get(f"{WEB_BASE}/", allow_redirects=False, timeout=5)
    assert after.status_code == 302
    assert after.headers["location"].startswith("/auth/login")


def test_public_preview_variant_is_private_to_creator():
    if not PUBLIC_PREVIEW_URL:
        pytest.skip("Set E2E_PUBLIC_PREVIEW_URL to a public question preview path")
    _require_server()
    owner = _login(f"e2e-{uuid.uuid4().hex[:8]}@example.com")
    page = owner.get(f"{WEB_BASE}{PUBLIC_PREVIEW_URL}", timeout=5)
    assert page.status_code == 200, page.text
    variant_id = re.search(r'data-variant-id="([^"]+)"', page.text).group(1)

    other = _login(f"e2e-{uuid.uuid4().hex[:8]}@example.com")
    r = other.get(f"{WEB_BASE}{PUBLIC_PREVIEW_URL}", params={"variant_id": variant_id}, timeout=5)
    assert r.status_code == 403
    r = owner.get(f"{WEB_BASE}{PUBLIC_PREVIEW_URL}", params={"variant_id": variant_id}, timeout=5)
    assert r.status_code == 200
