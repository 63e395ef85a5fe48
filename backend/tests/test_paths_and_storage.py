"""
Editor path resolution, Ace modes, storage keys and the in-memory file store.
"""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import HTTPException

from backend.authoring.modes import get_mode_for_path
from backend.authoring.paths import contains_path, get_paths
from backend.courses.repo import Course
from backend.storage.file_store import InMemoryFileStore
from backend.storage.keys import make_file_key
from backend.storage.ports import FileNotFoundInStore, FileTooLarge


def _course(root: Path) -> Course:
    return Course(id="c-1", short_name="TEST 101", title="Test", path=str(root))


def test_get_paths_inside_course(tmp_path: Path):
    paths = get_paths(_course(tmp_path), "questions/addNumbers/question.html")
    assert paths.course_path == str(tmp_path.resolve())
    assert paths.working_path == str(tmp_path.resolve() / "questions/addNumbers/question.html")
    assert paths.working_path_relative_to_course == "questions/addNumbers/question.html"
    assert paths.working_directory == "questions/addNumbers"
    assert paths.working_filename == "question.html"


def test_get_paths_top_level_file(tmp_path: Path):
    paths = get_paths(_course(tmp_path), "infoCourse.json")
    assert paths.working_directory == "."
    assert paths.working_filename == "infoCourse.json"


@pytest.mark.parametrize("raw", ["", "   ", "/etc/passwd", "../secret.txt", "a/../../b", "a\\b", "."])
def test_get_paths_rejects_invalid_paths(tmp_path: Path, raw: str):
    with pytest.raises(HTTPException) as excinfo:
        get_paths(_course(tmp_path), raw)
    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "invalid_path"


def test_contains_path(tmp_path: Path):
    assert contains_path(str(tmp_path), str(tmp_path))
    assert contains_path(str(tmp_path), str(tmp_path / "a" / "b"))
    assert not contains_path(str(tmp_path / "a"), str(tmp_path / "ab"))


@pytest.mark.parametrize(
    "path, mode",
    [
        ("questions/q/question.html", "ace/mode/html"),
        ("questions/q/server.py", "ace/mode/python"),
        ("infoCourse.json", "ace/mode/json"),
        ("workspace/Dockerfile", "ace/mode/dockerfile"),
        ("README", "ace/mode/text"),
        ("NOTES.TXT", "ace/mode/text"),
    ],
)
def test_mode_for_path(path: str, mode: str):
    assert get_mode_for_path(path) == mode


def test_file_key_is_sanitized():
    key = make_file_key(file_type="instructor_file_edit", file_id="ab12-cd", display_filename="../Grüße file.txt")
    assert key == "instructor_file_edit/ab/ab12-cd-Grue-file.txt"
    assert ".." not in key and not key.startswith("/")


def test_file_store_upload_get_delete():
    store = InMemoryFileStore()
    file_id = store.upload_file(
        display_filename="notes.txt", contents=b"hello", type="instructor_file_edit", user_id="u-1", authn_user_id="u-1"
    )
    meta, data = store.get_file(file_id)
    assert data == b"hello"
    assert meta.size_bytes == 5
    assert meta.storage_key.startswith("instructor_file_edit/")

    store.delete_file(file_id, "u-1")
    assert store.files[file_id].deleted_by == "u-1"
    with pytest.raises(FileNotFoundInStore):
        store.get_file(file_id)
    with pytest.raises(FileNotFoundInStore):
        store.delete_file(file_id, "u-1")


def test_file_store_enforces_size_limit(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TESSERA_MAX_FILE_BYTES", "4")
    with pytest.raises(FileTooLarge):
        InMemoryFileStore().upload_file(
            display_filename="big.txt", contents=b"12345", type="t", user_id=None, authn_user_id=None
        )
