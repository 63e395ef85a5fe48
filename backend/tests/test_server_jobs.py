"""
Server jobs and the `file_modify` editor job.
"""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import HTTPException

from backend.authoring.editors import EditorContainer, FileModifyEditor
from backend.authoring.file_editor import b64_encode_unicode, get_hash
from backend.courses.repo import CoursesRepo
from backend.courses.sync import load_course
from backend.jobs.server_jobs import (
    STATUS_ERROR,
    STATUS_RUNNING,
    STATUS_SUCCESS,
    InMemoryJobSequenceRepo,
    JobSequenceNotFound,
    ServerJobError,
    create_server_job,
    get_job_sequence_with_formatted_output,
)
from utils.fixtures import NOTES_PATH, NOTES_TEXT, write_test_course


pytestmark = pytest.mark.anyio("asyncio")


def _job(repo: InMemoryJobSequenceRepo, course_id: str = "c-1"):
    return create_server_job(
        repo, course_id=course_id, user_id="u-1", authn_user_id="u-1", type="file_modify", description="Modify"
    )


async def test_successful_job_records_output_and_data():
    repo = InMemoryJobSequenceRepo()
    job = _job(repo)
    assert repo.get_job_sequence(job.job_sequence_id, "c-1").status == STATUS_RUNNING

    async def body(j):
        j.info("step <one>")
        j.data["done"] = True

    await job.execute(body)
    seq = get_job_sequence_with_formatted_output(repo, job.job_sequence_id, "c-1")
    assert seq.status == STATUS_SUCCESS
    assert seq.finished_at is not None
    assert seq.jobs[0].data == {"done": True}
    assert seq.jobs[0].output == "step <one>\n"
    assert seq.jobs[0].output_html == "step &lt;one&gt;\n"


async def test_failing_job_is_recorded_and_reraised():
    repo = InMemoryJobSequenceRepo()
    job = _job(repo)

    async def body(j):
        j.data["saveAttempted"] = True
        raise RuntimeError("disk full")

    with pytest.raises(ServerJobError) as excinfo:
        await job.execute(body)
    assert excinfo.value.job_sequence_id == job.job_sequence_id
    seq = repo.get_job_sequence(job.job_sequence_id, "c-1")
    assert seq.status == STATUS_ERROR
    assert seq.jobs[0].data == {"saveAttempted": True}
    assert seq.jobs[0].error_message == "disk full"
    assert "ERROR: disk full" in seq.jobs[0].output


def test_job_sequence_is_scoped_to_course():
    repo = InMemoryJobSequenceRepo()
    job = _job(repo)
    with pytest.raises(JobSequenceNotFound):
        get_job_sequence_with_formatted_output(repo, job.job_sequence_id, "c-2")
    with pytest.raises(JobSequenceNotFound):
        get_job_sequence_with_formatted_output(repo, "missing", "c-1")


def _editor(tmp_path: Path, new_text: str, orig_hash: str):
    courses = CoursesRepo()
    course_dir = write_test_course(tmp_path)
    course, _ = load_course(courses, course_dir)
    jobs = InMemoryJobSequenceRepo()
    editor = FileModifyEditor(
        courses=courses,
        jobs=jobs,
        course=course,
        user_id="u-1",
        authn_user_id="u-1",
        container=EditorContainer(root_path=str(course_dir), invalid_root_paths=[]),
        file_path=str(course_dir / NOTES_PATH),
        edit_contents=b64_encode_unicode(new_text),
        orig_hash=orig_hash,
    )
    return editor, jobs, course, course_dir


async def test_file_modify_saves_and_syncs(tmp_path: Path):
    editor, jobs, course, course_dir = _editor(tmp_path, "new notes\n", get_hash(b64_encode_unicode(NOTES_TEXT)))
    job = await editor.prepare_server_job()
    await editor.execute_with_server_job(job)
    seq = jobs.get_job_sequence(job.job_sequence_id, course.id)
    assert seq.status == STATUS_SUCCESS
    assert seq.type == "file_modify"
    assert seq.jobs[0].data == {
        "saveAttempted": True,
        "saveSucceeded": True,
        "syncAttempted": True,
        "syncSucceeded": True,
    }
    assert (course_dir / NOTES_PATH).read_text(encoding="utf-8") == "new notes\n"


async def test_file_modify_refuses_when_file_changed_on_disk(tmp_path: Path):
    editor, jobs, course, course_dir = _editor(tmp_path, "new notes\n", "stale-hash")
    job = await editor.prepare_server_job()
    with pytest.raises(ServerJobError, match="file changed on disk"):
        await editor.execute_with_server_job(job)
    seq = jobs.get_job_sequence(job.job_sequence_id, course.id)
    assert seq.status == STATUS_ERROR
    assert "saveSucceeded" not in seq.jobs[0].data
    assert (course_dir / NOTES_PATH).read_text(encoding="utf-8") == NOTES_TEXT


async def test_file_modify_rejects_paths_outside_container(tmp_path: Path):
    editor, _, _, _ = _editor(tmp_path, "x", "h")
    editor.file_path = str(tmp_path / "outside.txt")
    with pytest.raises(HTTPException) as excinfo:
        await editor.prepare_server_job()
    assert excinfo.value.status_code == 403
