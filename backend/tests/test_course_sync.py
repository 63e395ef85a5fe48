"""
Course sync from disk and the `course_sync` command line tool.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from backend.courses.repo import CoursesRepo
from backend.courses.sync import (
    CourseSyncError,
    get_errors_and_warnings_for_file_path,
    load_course,
    sync_course_from_disk,
)
from backend.tools.course_sync import cli
from utils.fixtures import ASSESSMENT_TID, COURSE_INSTANCE_NAME, QUESTION_QID, write_test_course


QUESTION_INFO = f"questions/{QUESTION_QID}/info.json"
ASSESSMENT_INFO = f"courseInstances/{COURSE_INSTANCE_NAME}/assessments/{ASSESSMENT_TID}/infoAssessment.json"


def _patch_json(path: Path, **changes) -> None:
    data = json.loads(path.read_text(encoding="utf-8"))
    data.update(changes)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_load_course_syncs_every_entity(tmp_path: Path):
    repo = CoursesRepo()
    course, report = load_course(repo, write_test_course(tmp_path))
    assert report.ok
    assert (report.questions, report.course_instances, report.assessments) == (1, 1, 1)
    assert course.title == "Test Course"
    assert course.example_course is False
    assert course.sharing_name is None

    question = repo.get_question_by_qid(course_id=course.id, qid=QUESTION_QID)
    assert question.share_publicly is True
    assert question.workspace is True
    assert question.params == {"a": {"min": 1, "max": 9}, "b": [2, 4, 6]}

    ci = repo.get_course_instance_by_short_name(course.id, COURSE_INSTANCE_NAME)
    assert ci.long_name == "Spring 2015"
    assert ci.self_enrollment is True
    assessment = repo.get_assessment_by_tid(course_instance_id=ci.id, tid=ASSESSMENT_TID)
    assert assessment.question_ids == [question.id]


def test_loading_same_directory_twice_reuses_course(tmp_path: Path):
    repo = CoursesRepo()
    course_dir = write_test_course(tmp_path)
    first, _ = load_course(repo, course_dir)
    second, _ = load_course(repo, course_dir)
    assert first.id == second.id
    assert len(repo.courses) == 1


def test_invalid_question_is_reported_and_assessment_reference_fails(tmp_path: Path):
    repo = CoursesRepo()
    course_dir = write_test_course(tmp_path)
    (course_dir / QUESTION_INFO).write_text("{not json", encoding="utf-8")
    course, report = load_course(repo, course_dir)

    assert not report.ok
    assert report.errors[QUESTION_INFO][0].startswith("Error parsing JSON")
    assert f'Unknown question id "{QUESTION_QID}"' in report.errors[ASSESSMENT_INFO]
    assert report.questions == 0 and report.assessments == 0

    errors, warnings = get_errors_and_warnings_for_file_path(repo, course.id, QUESTION_INFO)
    assert "Error parsing JSON" in errors
    assert not warnings


def test_unknown_properties_are_warnings(tmp_path: Path):
    repo = CoursesRepo()
    course_dir = write_test_course(tmp_path)
    _patch_json(course_dir / QUESTION_INFO, gradingMethod="Internal")
    course, report = load_course(repo, course_dir)
    assert report.ok
    assert report.warnings[QUESTION_INFO] == ['Unknown property "gradingMethod"']
    assert repo.get_question_by_qid(course_id=course.id, qid=QUESTION_QID) is not None


def test_resync_replaces_previous_results(tmp_path: Path):
    repo = CoursesRepo()
    course_dir = write_test_course(tmp_path)
    _patch_json(course_dir / QUESTION_INFO, title="")
    course, report = load_course(repo, course_dir)
    assert QUESTION_INFO in report.errors

    _patch_json(course_dir / QUESTION_INFO, title="Fixed")
    report = sync_course_from_disk(repo, course.id)
    assert report.ok
    errors, _ = get_errors_and_warnings_for_file_path(repo, course.id, QUESTION_INFO)
    assert not errors
    assert repo.get_question_by_qid(course_id=course.id, qid=QUESTION_QID).title == "Fixed"


def test_invalid_assessment_type_is_an_error(tmp_path: Path):
    repo = CoursesRepo()
    course_dir = write_test_course(tmp_path)
    _patch_json(course_dir / ASSESSMENT_INFO, type="Quiz")
    _, report = load_course(repo, course_dir)
    assert report.errors[ASSESSMENT_INFO] == ['Invalid assessment type "Quiz"']


def test_sharing_name_and_example_course_flags(tmp_path: Path):
    repo = CoursesRepo()
    course_dir = write_test_course(tmp_path, example_course=True)
    _patch_json(course_dir / "infoCourse.json", sharingName="test-course")
    course, _ = load_course(repo, course_dir)
    assert course.example_course is True
    assert course.sharing_name == "test-course"


def test_missing_course_info_aborts_sync(tmp_path: Path):
    course_dir = write_test_course(tmp_path)
    (course_dir / "infoCourse.json").unlink()
    with pytest.raises(CourseSyncError, match="Missing infoCourse.json"):
        load_course(CoursesRepo(), course_dir)


def test_course_info_without_title_aborts_sync(tmp_path: Path):
    course_dir = write_test_course(tmp_path)
    _patch_json(course_dir / "infoCourse.json", title=None)
    with pytest.raises(CourseSyncError, match="title"):
        load_course(CoursesRepo(), course_dir)


def test_cli_reports_clean_course(tmp_path: Path):
    course_dir = write_test_course(tmp_path)
    result = CliRunner().invoke(cli, [str(course_dir)])
    assert result.exit_code == 0, result.output
    assert f"{course_dir}: 1 questions, 1 course instances, 1 assessments" in result.output


def test_cli_fails_on_errors(tmp_path: Path):
    course_dir = write_test_course(tmp_path)
    _patch_json(course_dir / ASSESSMENT_INFO, type="Quiz")
    result = CliRunner().invoke(cli, [str(course_dir)])
    assert result.exit_code == 1
    assert f'  ERROR {ASSESSMENT_INFO}: Invalid assessment type "Quiz"' in result.output


def test_cli_warnings_fail_only_with_flag(tmp_path: Path):
    course_dir = write_test_course(tmp_path)
    _patch_json(course_dir / QUESTION_INFO, gradingMethod="Internal")
    runner = CliRunner()
    relaxed = runner.invoke(cli, [str(course_dir)])
    strict = runner.invoke(cli, ["--fail-on-warnings", str(course_dir)])
    assert relaxed.exit_code == 0
    assert f'  WARNING {QUESTION_INFO}: Unknown property "gradingMethod"' in relaxed.output
    assert strict.exit_code == 1


def test_cli_reports_unloadable_course(tmp_path: Path):
    empty = tmp_path / "empty"
    empty.mkdir()
    result = CliRunner().invoke(cli, [str(empty)])
    assert result.exit_code == 1
    assert "Missing infoCourse.json" in result.output
