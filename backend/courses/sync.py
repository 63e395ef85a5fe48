"""
Course sync: read a course directory on disk into the platform repository.

Layout (relative to the course root):
    infoCourse.json                                        required
    questions/<qid...>/info.json (+ question.html)
    courseInstances/<ci>/infoCourseInstance.json
    courseInstances/<ci>/assessments/<tid>/infoAssessment.json

Behavior:
    - A missing or invalid `infoCourse.json` aborts the sync with `CourseSyncError`.
    - Every other file is synced independently. Problems are recorded as
      per-file errors (entity not updated) or warnings (entity updated) against
      the file's course-relative path, replacing the results of the last sync.
    - The draft editor shows these messages for the file being edited via
      `get_errors_and_warnings_for_file_path`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from backend.courses.repo import Course, CoursesRepo


logger = logging.getLogger("tessera.sync")

COURSE_INFO_FILE = "infoCourse.json"
QUESTION_INFO_FILE = "info.json"
QUESTION_HTML_FILE = "question.html"
COURSE_INSTANCE_INFO_FILE = "infoCourseInstance.json"
ASSESSMENT_INFO_FILE = "infoAssessment.json"

_COURSE_KEYS = {"uuid", "name", "title", "exampleCourse", "sharingName", "options", "topics", "tags"}
_QUESTION_KEYS = {
    "uuid",
    "title",
    "topic",
    "tags",
    "type",
    "sharePublicly",
    "workspaceOptions",
    "params",
    "generatedFiles",
    "submissionFiles",
}
_COURSE_INSTANCE_KEYS = {"uuid", "longName", "selfEnrollment", "allowAccess"}
_ASSESSMENT_KEYS = {"uuid", "title", "type", "set", "number", "zones", "allowAccess"}
_ASSESSMENT_TYPES = {"Homework", "Exam"}


class CourseSyncError(Exception):
    """Raised when the course as a whole cannot be synced."""


@dataclass
class SyncReport:
    course_id: str
    errors: Dict[str, List[str]] = field(default_factory=dict)
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    questions: int = 0
    course_instances: int = 0
    assessments: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    def error(self, rel_path: str, message: str) -> None:
        self.errors.setdefault(rel_path, []).append(message)

    def warn(self, rel_path: str, message: str) -> None:
        self.warnings.setdefault(rel_path, []).append(message)


def _rel(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def _load_json(path: Path, rel_path: str, report: SyncReport) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        report.error(rel_path, f"Error reading {rel_path}: {exc}")
        return None
    except json.JSONDecodeError as exc:
        report.error(rel_path, f"Error parsing JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})")
        return None
    if not isinstance(data, dict):
        report.error(rel_path, "Expected a JSON object at the top level")
        return None
    return data


def _check_unknown_keys(data: Dict[str, Any], known: set, rel_path: str, report: SyncReport) -> None:
    for key in sorted(set(data) - known):
        report.warn(rel_path, f'Unknown property "{key}"')


def _require_str(data: Dict[str, Any], key: str, rel_path: str, report: SyncReport) -> Optional[str]:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        report.error(rel_path, f'Missing or invalid required property "{key}"')
        return None
    return value.strip()


def _optional_mapping(data: Dict[str, Any], key: str, rel_path: str, report: SyncReport) -> Dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        report.error(rel_path, f'Property "{key}" must be an object')
        return {}
    return value


def _string_mapping(data: Dict[str, Any], key: str, rel_path: str, report: SyncReport) -> Dict[str, str]:
    raw = _optional_mapping(data, key, rel_path, report)
    out: Dict[str, str] = {}
    for name, value in raw.items():
        if "/" in name or name in ("", ".", ".."):
            report.error(rel_path, f'Invalid file name "{name}" in "{key}"')
            continue
        if not isinstance(value, str):
            report.error(rel_path, f'Value for "{key}.{name}" must be a string')
            continue
        out[name] = value
    return out


def _sync_course_info(repo: CoursesRepo, course: Course, root: Path, report: SyncReport) -> None:
    info_path = root / COURSE_INFO_FILE
    if not info_path.is_file():
        raise CourseSyncError(f"Missing {COURSE_INFO_FILE} in {root}")
    data = _load_json(info_path, COURSE_INFO_FILE, report)
    if data is None:
        raise CourseSyncError("; ".join(report.errors.get(COURSE_INFO_FILE, [])))
    name = _require_str(data, "name", COURSE_INFO_FILE, report)
    title = _require_str(data, "title", COURSE_INFO_FILE, report)
    if name is None or title is None:
        raise CourseSyncError("; ".join(report.errors.get(COURSE_INFO_FILE, [])))
    _check_unknown_keys(data, _COURSE_KEYS, COURSE_INFO_FILE, report)
    repo.update_course(course.id, title=title, example_course=bool(data.get("exampleCourse", False)))
    sharing_name = data.get("sharingName")
    if sharing_name is not None and not isinstance(sharing_name, str):
        report.warn(COURSE_INFO_FILE, 'Property "sharingName" must be a string; ignored')
        sharing_name = None
    repo.update_course_sharing_name(course_id=course.id, sharing_name=sharing_name)


def _sync_questions(repo: CoursesRepo, course: Course, root: Path, report: SyncReport) -> Dict[str, str]:
    """Sync all questions; return qid -> question id for the synced ones."""
    qids: Dict[str, str] = {}
    questions_root = root / "questions"
    if not questions_root.is_dir():
        return qids
    for dirpath, dirnames, filenames in os.walk(questions_root):
        dirnames.sort()
        if QUESTION_INFO_FILE not in filenames:
            continue
        # A question directory ends the walk; nested dirs belong to the question.
        dirnames[:] = []
        qdir = Path(dirpath)
        qid = qdir.relative_to(questions_root).as_posix()
        rel_path = _rel(root, qdir / QUESTION_INFO_FILE)
        data = _load_json(qdir / QUESTION_INFO_FILE, rel_path, report)
        if data is None:
            continue
        errors_before = len(report.errors.get(rel_path, []))
        title = _require_str(data, "title", rel_path, report)
        params = _optional_mapping(data, "params", rel_path, report)
        generated = _string_mapping(data, "generatedFiles", rel_path, report)
        submission = _string_mapping(data, "submissionFiles", rel_path, report)
        workspace = data.get("workspaceOptions")
        if workspace is not None and not isinstance(workspace, dict):
            report.error(rel_path, 'Property "workspaceOptions" must be an object')
        if len(report.errors.get(rel_path, [])) > errors_before or title is None:
            continue
        _check_unknown_keys(data, _QUESTION_KEYS, rel_path, report)
        html_path = qdir / QUESTION_HTML_FILE
        html = html_path.read_text(encoding="utf-8") if html_path.is_file() else ""
        if not html:
            report.warn(rel_path, f"Missing {QUESTION_HTML_FILE}")
        question = repo.upsert_question(
            course_id=course.id,
            qid=qid,
            title=title,
            share_publicly=bool(data.get("sharePublicly", False)),
            workspace=workspace is not None,
            params=params,
            generated_files=generated,
            submission_files=submission,
            html=html,
        )
        qids[qid] = question.id
        report.questions += 1
    return qids


def _zone_question_ids(data: Dict[str, Any], rel_path: str, report: SyncReport) -> List[str]:
    zones = data.get("zones", [])
    if not isinstance(zones, list):
        report.error(rel_path, 'Property "zones" must be an array')
        return []
    out: List[str] = []
    for zone in zones:
        questions = zone.get("questions", []) if isinstance(zone, dict) else None
        if not isinstance(questions, list):
            report.error(rel_path, 'Each zone must have a "questions" array')
            continue
        for item in questions:
            qid = item.get("id") if isinstance(item, dict) else None
            if not isinstance(qid, str) or not qid:
                report.error(rel_path, 'Each zone question must have an "id"')
                continue
            out.append(qid)
    return out


def _sync_course_instances(
    repo: CoursesRepo, course: Course, root: Path, qids: Dict[str, str], report: SyncReport
) -> None:
    instances_root = root / "courseInstances"
    if not instances_root.is_dir():
        return
    for ci_dir in sorted(p for p in instances_root.iterdir() if p.is_dir()):
        info_path = ci_dir / COURSE_INSTANCE_INFO_FILE
        if not info_path.is_file():
            continue
        rel_path = _rel(root, info_path)
        data = _load_json(info_path, rel_path, report)
        if data is None:
            continue
        long_name = _require_str(data, "longName", rel_path, report)
        if long_name is None:
            continue
        _check_unknown_keys(data, _COURSE_INSTANCE_KEYS, rel_path, report)
        ci = repo.upsert_course_instance(
            course_id=course.id,
            short_name=ci_dir.name,
            long_name=long_name,
            self_enrollment=bool(data.get("selfEnrollment", True)),
        )
        report.course_instances += 1

        assessments_root = ci_dir / "assessments"
        if not assessments_root.is_dir():
            continue
        for a_dir in sorted(p for p in assessments_root.iterdir() if p.is_dir()):
            a_info = a_dir / ASSESSMENT_INFO_FILE
            if not a_info.is_file():
                continue
            a_rel = _rel(root, a_info)
            a_data = _load_json(a_info, a_rel, report)
            if a_data is None:
                continue
            errors_before = len(report.errors.get(a_rel, []))
            title = _require_str(a_data, "title", a_rel, report)
            a_type = _require_str(a_data, "type", a_rel, report)
            if a_type is not None and a_type not in _ASSESSMENT_TYPES:
                report.error(a_rel, f'Invalid assessment type "{a_type}"')
            question_ids: List[str] = []
            for qid in _zone_question_ids(a_data, a_rel, report):
                if qid not in qids:
                    report.error(a_rel, f'Unknown question id "{qid}"')
                    continue
                question_ids.append(qids[qid])
            if len(report.errors.get(a_rel, [])) > errors_before:
                continue
            _check_unknown_keys(a_data, _ASSESSMENT_KEYS, a_rel, report)
            repo.upsert_assessment(
                course_instance_id=ci.id,
                tid=a_dir.name,
                title=title or a_dir.name,
                type=a_type or "Homework",
                question_ids=question_ids,
            )
            report.assessments += 1


def sync_course_from_disk(repo: CoursesRepo, course_id: str) -> SyncReport:
    """Sync the course directory into `repo` and record per-file results.

    Raises `CourseSyncError` when the course is unknown or `infoCourse.json`
    is missing/invalid; per-file problems are reported, not raised.
    """
    course = repo.get_course(course_id)
    if course is None:
        raise CourseSyncError(f"Unknown course: {course_id}")
    root = Path(course.path)
    if not root.is_dir():
        raise CourseSyncError(f"Course directory not found: {root}")
    report = SyncReport(course_id=course_id)
    logger.info("sync start course_id=%s path=%s", course_id, root)
    _sync_course_info(repo, course, root, report)
    qids = _sync_questions(repo, course, root, report)
    _sync_course_instances(repo, course, root, qids, report)

    repo.clear_sync_results(course_id)
    for rel_path in sorted(set(report.errors) | set(report.warnings)):
        repo.set_sync_result(
            course_id,
            rel_path,
            errors="\n".join(report.errors.get(rel_path, [])),
            warnings="\n".join(report.warnings.get(rel_path, [])),
        )
    logger.info(
        "sync done course_id=%s questions=%s course_instances=%s assessments=%s files_with_errors=%s",
        course_id,
        report.questions,
        report.course_instances,
        report.assessments,
        len(report.errors),
    )
    return report


def load_course(repo: CoursesRepo, course_path: str | os.PathLike) -> Tuple[Course, SyncReport]:
    """Register the course at `course_path` (by directory) and sync it."""
    root = Path(course_path).resolve()
    for course in repo.courses.values():
        if Path(course.path).resolve() == root:
            return course, sync_course_from_disk(repo, course.id)
    course = repo.create_course(short_name=root.name, title=root.name, path=str(root))
    return course, sync_course_from_disk(repo, course.id)


def get_errors_and_warnings_for_file_path(
    repo: CoursesRepo, course_id: str, rel_path: str
) -> Tuple[Optional[str], Optional[str]]:
    result = repo.get_sync_result(course_id, rel_path)
    return result.errors, result.warnings


__all__ = [
    "CourseSyncError",
    "SyncReport",
    "sync_course_from_disk",
    "load_course",
    "get_errors_and_warnings_for_file_path",
]
