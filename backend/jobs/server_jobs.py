"""
Server jobs: tracked units of work grouped into job sequences.

Why:
    Course edits (write a file, then re-sync the course) must leave a record
    the editor can inspect on the next page load: did the save happen, did the
    sync happen, what was logged. A job sequence is that record.

Behavior:
    - `prepare_server_job()` creates a sequence with status "Running" and one
      job; the returned `ServerJob` collects output lines and a `data` dict.
    - `ServerJob.execute(fn)` awaits `fn(job)`; on return the job and its
      sequence become "Success", on exception "Error" (the error is logged to
      the job output and re-raised as `ServerJobError`).
    - Sequences recorded before structured `data` existed are flagged
      `legacy=True`; consumers must not read outcome flags from them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol
from uuid import uuid4


logger = logging.getLogger("tessera.jobs")

STATUS_RUNNING = "Running"
STATUS_SUCCESS = "Success"
STATUS_ERROR = "Error"


class ServerJobError(Exception):
    """Raised when a server job fails; carries the job sequence id."""

    def __init__(self, message: str, *, job_sequence_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.job_sequence_id = job_sequence_id


class JobSequenceNotFound(LookupError):
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Job:
    id: str
    job_sequence_id: str
    number: int
    status: str = STATUS_RUNNING
    data: Dict[str, Any] = field(default_factory=dict)
    output: str = ""
    error_message: Optional[str] = None
    output_html: str = ""


@dataclass
class JobSequence:
    id: str
    course_id: Optional[str]
    user_id: Optional[str]
    authn_user_id: Optional[str]
    type: str
    description: str
    status: str = STATUS_RUNNING
    legacy: bool = False
    created_at: str = ""
    finished_at: Optional[str] = None
    jobs: List[Job] = field(default_factory=list)


class JobSequenceRepoProtocol(Protocol):
    def create_job_sequence(
        self,
        *,
        course_id: Optional[str],
        user_id: Optional[str],
        authn_user_id: Optional[str],
        type: str,
        description: str,
        legacy: bool = False,
    ) -> tuple[str, str]: ...

    def update_job(self, job_id: str, *, status: str, data: Dict[str, Any], output: str, error_message: Optional[str] = None) -> None: ...

    def finish_job_sequence(self, job_sequence_id: str, *, status: str) -> None: ...

    def get_job_sequence(self, job_sequence_id: str, course_id: Optional[str]) -> Optional[JobSequence]: ...


class InMemoryJobSequenceRepo:
    def __init__(self) -> None:
        self.sequences: Dict[str, JobSequence] = {}

    def create_job_sequence(
        self,
        *,
        course_id: Optional[str],
        user_id: Optional[str],
        authn_user_id: Optional[str],
        type: str,
        description: str,
        legacy: bool = False,
    ) -> tuple[str, str]:
        seq = JobSequence(
            id=str(uuid4()),
            course_id=course_id,
            user_id=user_id,
            authn_user_id=authn_user_id,
            type=type,
            description=description,
            legacy=legacy,
            created_at=_now_iso(),
        )
        job = Job(id=str(uuid4()), job_sequence_id=seq.id, number=1)
        seq.jobs.append(job)
        self.sequences[seq.id] = seq
        return seq.id, job.id

    def _find_job(self, job_id: str) -> Job:
        for seq in self.sequences.values():
            for job in seq.jobs:
                if job.id == job_id:
                    return job
        raise JobSequenceNotFound(job_id)

    def update_job(
        self, job_id: str, *, status: str, data: Dict[str, Any], output: str, error_message: Optional[str] = None
    ) -> None:
        job = self._find_job(job_id)
        job.status = status
        job.data = dict(data)
        job.output = output
        job.error_message = error_message

    def finish_job_sequence(self, job_sequence_id: str, *, status: str) -> None:
        seq = self.sequences.get(job_sequence_id)
        if seq is None:
            raise JobSequenceNotFound(job_sequence_id)
        seq.status = status
        seq.finished_at = _now_iso()

    def get_job_sequence(self, job_sequence_id: str, course_id: Optional[str]) -> Optional[JobSequence]:
        seq = self.sequences.get(job_sequence_id)
        if seq is None or seq.course_id != course_id:
            return None
        return seq


class ServerJob:
    """Handle passed to the job body; collects output and structured data."""

    def __init__(self, repo: JobSequenceRepoProtocol, *, job_sequence_id: str, job_id: str) -> None:
        self._repo = repo
        self.job_sequence_id = job_sequence_id
        self.job_id = job_id
        self.data: Dict[str, Any] = {}
        self._lines: List[str] = []

    @property
    def output(self) -> str:
        return "".join(self._lines)

    def info(self, msg: str) -> None:
        self._lines.append(f"{msg}\n")

    def verbose(self, msg: str) -> None:
        self._lines.append(f"{msg}\n")

    def error(self, msg: str) -> None:
        self._lines.append(f"ERROR: {msg}\n")

    def fail(self, msg: str) -> None:
        raise ServerJobError(msg, job_sequence_id=self.job_sequence_id)

    async def execute(self, fn: Callable[["ServerJob"], Awaitable[None]]) -> None:
        try:
            await fn(self)
        except Exception as exc:
            self.error(str(exc))
            self._repo.update_job(
                self.job_id, status=STATUS_ERROR, data=self.data, output=self.output, error_message=str(exc)
            )
            self._repo.finish_job_sequence(self.job_sequence_id, status=STATUS_ERROR)
            logger.info("job failed job_sequence_id=%s error=%s", self.job_sequence_id, exc)
            if isinstance(exc, ServerJobError):
                raise
            raise ServerJobError(str(exc), job_sequence_id=self.job_sequence_id) from exc
        self._repo.update_job(self.job_id, status=STATUS_SUCCESS, data=self.data, output=self.output)
        self._repo.finish_job_sequence(self.job_sequence_id, status=STATUS_SUCCESS)
        logger.info("job succeeded job_sequence_id=%s", self.job_sequence_id)


def create_server_job(
    repo: JobSequenceRepoProtocol,
    *,
    course_id: Optional[str],
    user_id: Optional[str],
    authn_user_id: Optional[str],
    type: str,
    description: str,
) -> ServerJob:
    job_sequence_id, job_id = repo.create_job_sequence(
        course_id=course_id,
        user_id=user_id,
        authn_user_id=authn_user_id,
        type=type,
        description=description,
    )
    logger.debug("job sequence created id=%s type=%s", job_sequence_id, type)
    return ServerJob(repo, job_sequence_id=job_sequence_id, job_id=job_id)


def get_job_sequence_with_formatted_output(
    repo: JobSequenceRepoProtocol, job_sequence_id: str, course_id: Optional[str]
) -> JobSequence:
    """Load a sequence of `course_id` and attach HTML-safe output to each job.

    Raises `JobSequenceNotFound` for unknown ids and for sequences of other courses.
    """
    seq = repo.get_job_sequence(job_sequence_id, course_id)
    if seq is None:
        raise JobSequenceNotFound(job_sequence_id)
    for job in seq.jobs:
        job.output_html = escape(job.output or "")
    return seq


__all__ = [
    "STATUS_RUNNING",
    "STATUS_SUCCESS",
    "STATUS_ERROR",
    "ServerJobError",
    "JobSequenceNotFound",
    "Job",
    "JobSequence",
    "JobSequenceRepoProtocol",
    "InMemoryJobSequenceRepo",
    "ServerJob",
    "create_server_job",
    "get_job_sequence_with_formatted_output",
]
