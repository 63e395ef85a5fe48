"""
Process-wide collaborators for the web adapters.

Why:
    Routes need the platform repository, the draft store, the file store, the
    job sequence repository and the session store. Building them lazily keeps
    imports free of DB checks; `set_*` lets tests swap implementations.

Behavior:
    - Draft, file and job stores prefer their Postgres implementations when a
      DSN is configured and reachable, and fall back to in-memory versions
      otherwise (with a warning).
    - The platform repository is in-memory; courses listed in
      TESSERA_COURSE_DIRS (os.pathsep-separated) are synced at first use.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional

from backend.authoring.drafts import InMemoryDraftRepo
from backend.courses.repo import CoursesRepo
from backend.courses.sync import CourseSyncError, load_course
from backend.identity_access.stores import SessionStore
from backend.jobs.server_jobs import InMemoryJobSequenceRepo
from backend.storage.config import FILE_STORE_ROOT_DEFAULT, get_database_dsn, get_file_store_root
from backend.storage.file_store import InMemoryFileStore


logger = logging.getLogger("tessera.web.wiring")


def _db_reachable(dsn: Optional[str]) -> bool:
    if not dsn:
        return False
    try:
        import psycopg
    except ImportError:
        logger.warning("psycopg not installed; using in-memory stores")
        return False
    try:
        with psycopg.connect(dsn, connect_timeout=3):
            return True
    except psycopg.Error as exc:
        logger.warning("Database unreachable (%s); using in-memory stores", exc.__class__.__name__)
        return False


def _build_with_fallback(name: str, build_db: Callable[[], Any], build_memory: Callable[[], Any]) -> Any:
    if not _db_reachable(get_database_dsn()):
        return build_memory()
    try:
        return build_db()
    except RuntimeError as exc:
        logger.warning("%s unavailable (%s); using in-memory fallback", name, exc)
        return build_memory()


def _build_drafts():
    def _db():
        from backend.authoring.drafts_db import DBDraftRepo
        return DBDraftRepo()
    return _build_with_fallback("Draft repo", _db, InMemoryDraftRepo)


def _build_file_store():
    def _db():
        from backend.storage.file_store_db import DBFileStore
        return DBFileStore(root=get_file_store_root(default=FILE_STORE_ROOT_DEFAULT))
    return _build_with_fallback("File store", _db, InMemoryFileStore)


def _build_jobs():
    def _db():
        from backend.jobs.server_jobs_db import DBJobSequenceRepo
        return DBJobSequenceRepo()
    return _build_with_fallback("Job sequence repo", _db, InMemoryJobSequenceRepo)


def _build_courses() -> CoursesRepo:
    repo = CoursesRepo()
    for path in (os.getenv("TESSERA_COURSE_DIRS") or "").split(os.pathsep):
        if not path.strip():
            continue
        try:
            course, report = load_course(repo, path.strip())
        except CourseSyncError as exc:
            logger.error("Course sync failed for %s: %s", path, exc)
            continue
        logger.info("Loaded course %s (%s) with %s file errors", course.short_name, course.id, len(report.errors))
    return repo


_COURSES: Optional[CoursesRepo] = None
_DRAFTS = None
_FILE_STORE = None
_JOBS = None
_SESSIONS: Optional[SessionStore] = None


def get_courses_repo() -> CoursesRepo:
    global _COURSES
    if _COURSES is None:
        _COURSES = _build_courses()
    return _COURSES


def set_courses_repo(repo: Optional[CoursesRepo]) -> None:
    global _COURSES
    _COURSES = repo


def get_draft_repo():
    global _DRAFTS
    if _DRAFTS is None:
        _DRAFTS = _build_drafts()
    return _DRAFTS


def set_draft_repo(repo) -> None:
    global _DRAFTS
    _DRAFTS = repo


def get_file_store():
    global _FILE_STORE
    if _FILE_STORE is None:
        _FILE_STORE = _build_file_store()
    return _FILE_STORE


def set_file_store(store) -> None:
    global _FILE_STORE
    _FILE_STORE = store


def get_job_repo():
    global _JOBS
    if _JOBS is None:
        _JOBS = _build_jobs()
    return _JOBS


def set_job_repo(repo) -> None:
    global _JOBS
    _JOBS = repo


def get_session_store() -> SessionStore:
    global _SESSIONS
    if _SESSIONS is None:
        _SESSIONS = SessionStore()
    return _SESSIONS


def set_session_store(store: Optional[SessionStore]) -> None:
    global _SESSIONS
    _SESSIONS = store


__all__ = [
    "get_courses_repo",
    "set_courses_repo",
    "get_draft_repo",
    "set_draft_repo",
    "get_file_store",
    "set_file_store",
    "get_job_repo",
    "set_job_repo",
    "get_session_store",
    "set_session_store",
]
