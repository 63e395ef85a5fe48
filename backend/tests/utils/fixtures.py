"""
Course directory and session helpers shared by the web and service tests.

The course written by `write_test_course` mirrors what an author would
commit: one shared question with a workspace, a generated file and a
submission file, one course instance, and one homework that uses it.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Optional

import httpx
from httpx import ASGITransport

from backend.web.auth_utils import SESSION_COOKIE_NAME
from backend.web.wiring import get_courses_repo, get_session_store


QUESTION_QID = "variantAccess"
QUESTION_TITLE = "Test access to a variant and its resources"
ASSESSMENT_TID = "hw11-variantAccess"
COURSE_INSTANCE_NAME = "Sp15"
GENERATED_FILE_TEXT = "This data is generated by code."
SUBMISSION_FILE_TEXT = "Submitted data."
NOTES_PATH = "clientFilesCourse/notes.txt"
NOTES_TEXT = "Office hours: Tuesday 10:00\n"
BINARY_PATH = "clientFilesCourse/logo.bin"


def _write_json(path: Path, data: Dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def write_test_course(root: Path, *, example_course: bool = False) -> Path:
    """Write the test course below `root` and return the course directory."""
    course_dir = root / "testCourse"
    info: Dict = {"uuid": "c0ffee00-0000-4000-8000-000000000001", "name": "TEST 101", "title": "Test Course"}
    if example_course:
        info["exampleCourse"] = True
    _write_json(course_dir / "infoCourse.json", info)

    qdir = course_dir / "questions" / QUESTION_QID
    _write_json(
        qdir / "info.json",
        {
            "uuid": "c0ffee00-0000-4000-8000-000000000002",
            "title": QUESTION_TITLE,
            "topic": "Access",
            "type": "v3",
            "sharePublicly": True,
            "workspaceOptions": {"image": "tessera/workspace-python", "port": 8080, "home": "/home/coder"},
            "params": {"a": {"min": 1, "max": 9}, "b": [2, 4, 6]},
            "generatedFiles": {"file.txt": GENERATED_FILE_TEXT},
            "submissionFiles": {"submission.txt": SUBMISSION_FILE_TEXT},
        },
    )
    (qdir / "question.html").write_text("<p>Compute $a + $b.</p>\n", encoding="utf-8")

    ci_dir = course_dir / "courseInstances" / COURSE_INSTANCE_NAME
    _write_json(ci_dir / "infoCourseInstance.json", {"uuid": "c0ffee00-0000-4000-8000-000000000003", "longName": "Spring 2015"})
    _write_json(
        ci_dir / "assessments" / ASSESSMENT_TID / "infoAssessment.json",
        {
            "uuid": "c0ffee00-0000-4000-8000-000000000004",
            "title": "Variant access",
            "type": "Homework",
            "set": "Homework",
            "number": "11",
            "zones": [{"questions": [{"id": QUESTION_QID}]}],
        },
    )

    notes = course_dir / NOTES_PATH
    notes.parent.mkdir(parents=True, exist_ok=True)
    notes.write_text(NOTES_TEXT, encoding="utf-8")
    (course_dir / BINARY_PATH).write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    return course_dir


def login(uid: str, name: str, uin: Optional[str] = None) -> str:
    """Create (or find) the user and return a fresh session id for them."""
    user = get_courses_repo().get_or_create_user(uid=uid, name=name, uin=uin)
    rec = get_session_store().create(user_id=user.user_id, uid=user.uid, name=user.name)
    return rec.session_id


def client_for(
    app, session_id: Optional[str] = None, *, raise_app_exceptions: bool = True, **kwargs
) -> httpx.AsyncClient:
    cookies = {SESSION_COOKIE_NAME: session_id} if session_id else None
    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return httpx.AsyncClient(transport=transport, base_url="http://test", cookies=cookies, **kwargs)


def extract_input_value(html: str, name: str) -> Optional[str]:
    # Hidden inputs render as: type="hidden" name="<name>" value="<value>"
    m = re.search(rf'name="{re.escape(name)}" value="([^"]*)"', html)
    return m.group(1) if m else None


def extract_attr(html: str, attr: str) -> Optional[str]:
    m = re.search(rf'{re.escape(attr)}="([^"]*)"', html)
    return m.group(1) if m else None
