"""
Course editors: server-job backed modifications of course files.

`FileModifyEditor` writes new contents to one course file and re-syncs the
course. The work runs as a server job so the outcome (`saveAttempted`,
`saveSucceeded`, `syncAttempted`, `syncSucceeded`) is recorded on the job
and can be read back by the editor page.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import List

from fastapi import HTTPException

from backend.authoring.file_editor import b64_decode_unicode, b64_encode_unicode, get_hash
from backend.authoring.paths import contains_path
from backend.courses.repo import Course, CoursesRepo
from backend.courses.sync import sync_course_from_disk
from backend.jobs.server_jobs import JobSequenceRepoProtocol, ServerJob, create_server_job


logger = logging.getLogger("tessera.authoring.editors")


@dataclass
class EditorContainer:
    root_path: str
    invalid_root_paths: List[str] = field(default_factory=list)


class FileModifyEditor:
    def __init__(
        self,
        *,
        courses: CoursesRepo,
        jobs: JobSequenceRepoProtocol,
        course: Course,
        user_id: str,
        authn_user_id: str,
        container: EditorContainer,
        file_path: str,
        edit_contents: str,
        orig_hash: str,
    ) -> None:
        self.courses = courses
        self.jobs = jobs
        self.course = course
        self.user_id = user_id
        self.authn_user_id = authn_user_id
        self.container = container
        self.file_path = file_path
        self.edit_contents = edit_contents
        self.orig_hash = orig_hash

    @property
    def description(self) -> str:
        rel = Path(self.file_path).resolve().relative_to(Path(self.course.path).resolve()).as_posix()
        return f"Modify {rel}"

    def assert_can_edit(self) -> None:
        if not contains_path(self.container.root_path, self.file_path):
            raise HTTPException(status_code=403, detail="Invalid file path (outside editor root)")
        for invalid in self.container.invalid_root_paths:
            if contains_path(invalid, self.file_path):
                raise HTTPException(status_code=403, detail="Invalid file path (inside a protected root)")
        if self.course.example_course:
            raise HTTPException(status_code=403, detail="Access denied (cannot make changes to example course)")

    async def prepare_server_job(self) -> ServerJob:
        self.assert_can_edit()
        return create_server_job(
            self.jobs,
            course_id=self.course.id,
            user_id=self.user_id,
            authn_user_id=self.authn_user_id,
            type="file_modify",
            description=self.description,
        )

    async def execute_with_server_job(self, job: ServerJob) -> None:
        await job.execute(self._save_and_sync)

    async def _save_and_sync(self, job: ServerJob) -> None:
        path = Path(self.file_path)
        job.info(f"Check for changes to {path.name}")
        disk_hash = get_hash(b64_encode_unicode(path.read_bytes().decode("utf-8")))
        if disk_hash != self.orig_hash:
            job.fail(f"Another user made changes to the file you were editing ({path.name}); file changed on disk")

        job.data["saveAttempted"] = True
        job.info(f"Write {path.name}")
        path.write_bytes(b64_decode_unicode(self.edit_contents).encode("utf-8"))
        job.data["saveSucceeded"] = True

        job.data["syncAttempted"] = True
        job.info("Sync course from disk")
        report = sync_course_from_disk(self.courses, self.course.id)
        for rel_path, messages in sorted(report.errors.items()):
            for message in messages:
                job.error(f"{rel_path}: {message}")
        for rel_path, messages in sorted(report.warnings.items()):
            for message in messages:
                job.verbose(f"{rel_path}: {message}")
        job.data["syncSucceeded"] = True
        logger.info("file saved and synced course_id=%s path=%s", self.course.id, path.name)


__all__ = ["EditorContainer", "FileModifyEditor"]
