"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
give every test fresh in-memory collaborators so state never leaks between
cases.
"""
import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env only when the E2E suite is explicitly enabled.
if os.getenv("RUN_E2E", "0") == "1":
    load_dotenv()

REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from backend.authoring.drafts import InMemoryDraftRepo  # noqa: E402
from backend.courses.repo import CoursesRepo  # noqa: E402
from backend.identity_access.stores import SessionStore  # noqa: E402
from backend.jobs.server_jobs import InMemoryJobSequenceRepo  # noqa: E402
from backend.storage.file_store import InMemoryFileStore  # noqa: E402
from backend.web import wiring  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_wiring(monkeypatch: pytest.MonkeyPatch):
    """Swap every process-wide collaborator for a fresh in-memory instance.

    Behavior:
        - Clears environment toggles that change cookie/CSRF/login behavior.
        - Tests that need a course load it into `wiring.get_courses_repo()`.
    """
    for var in ("TESSERA_ENABLE_DEV_LOGIN", "TESSERA_TRUST_PROXY", "TESSERA_COURSE_DIRS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("TESSERA_ENV", "test")

    wiring.set_courses_repo(CoursesRepo())
    wiring.set_draft_repo(InMemoryDraftRepo())
    wiring.set_file_store(InMemoryFileStore())
    wiring.set_job_repo(InMemoryJobSequenceRepo())
    wiring.set_session_store(SessionStore())
    yield
    for setter in (
        wiring.set_courses_repo,
        wiring.set_draft_repo,
        wiring.set_file_store,
        wiring.set_job_repo,
        wiring.set_session_store,
    ):
        setter(None)
