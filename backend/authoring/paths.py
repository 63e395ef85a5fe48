"""
Resolve editor paths inside a course directory.

Security:
    The requested path is untrusted input from the URL. Absolute paths, `..`
    segments and anything resolving (after symlinks) outside the course root
    are rejected with HTTP 400 before any filesystem access.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import posixpath
from pathlib import Path, PurePosixPath
from typing import List

from fastapi import HTTPException

from backend.courses.repo import Course


@dataclass
class FilePaths:
    course_path: str
    root_path: str
    working_path: str
    working_path_relative_to_course: str
    working_directory: str
    working_filename: str
    invalid_root_paths: List[str] = field(default_factory=list)


def get_paths(course: Course, raw_path: str) -> FilePaths:
    raw = (raw_path or "").strip()
    if not raw:
        raise HTTPException(status_code=400, detail="invalid_path")
    pure = PurePosixPath(raw)
    if pure.is_absolute() or "\\" in raw or any(part == ".." for part in pure.parts):
        raise HTTPException(status_code=400, detail="invalid_path")

    course_path = Path(course.path).resolve()
    working_path = (course_path / pure).resolve()
    if course_path not in working_path.parents:
        raise HTTPException(status_code=400, detail="invalid_path")

    rel = working_path.relative_to(course_path).as_posix()
    return FilePaths(
        course_path=str(course_path),
        root_path=str(course_path),
        working_path=str(working_path),
        working_path_relative_to_course=rel,
        working_directory=posixpath.dirname(rel) or ".",
        working_filename=posixpath.basename(rel),
        invalid_root_paths=[],
    )


def contains_path(parent: str, child: str) -> bool:
    """True when `child` is `parent` itself or lies below it."""
    p = Path(parent).resolve()
    c = Path(child).resolve()
    return c == p or p in c.parents


__all__ = ["FilePaths", "get_paths", "contains_path"]
