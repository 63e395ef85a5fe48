"""
Pytest configuration for E2E tests.

Behavior:
- Loads .env so that WEB_BASE and E2E_COURSE_* are taken from the project's
  environment file, matching the docker-compose settings.
- Skips the entire E2E test suite unless RUN_E2E=1 is set. This keeps the
  default developer/CI workflow fast and deterministic. When running locally
  against a started server, export RUN_E2E=1 to enable these tests.
"""
import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

if os.getenv("RUN_E2E", "0") == "1":
    load_dotenv()


def pytest_collection_modifyitems(config, items):
    """Gate E2E tests behind an explicit flag RUN_E2E=1."""
    pkg_dir = Path(__file__).parent.resolve()
    if os.getenv("RUN_E2E", "0") == "1":
        return
    skip = pytest.mark.skip(reason="E2E tests disabled; set RUN_E2E=1 to enable")
    for item in items:
        if Path(str(item.fspath)).resolve().is_relative_to(pkg_dir):
            item.add_marker(skip)
