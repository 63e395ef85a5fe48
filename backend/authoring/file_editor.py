"""
Draft file editor service: read/write drafts and reconcile them with disk.

Why:
    An instructor may leave the editor with unsaved work, or save while the
    file changed underneath them. Each page load must decide what to show:
    the disk version, or a choice between the disk version and the draft.

Behavior (read path, see `load_file_edit` + `reconcile_file_edit`):
    1. Consume the draft: select the newest active draft, soft-delete all
       active drafts for the key and drop their stored contents, then read the
       selected draft's contents (ignored when older than 24 hours) and drop them.
    2. Read the file from disk; binary files raise `BinaryFileError`.
    3. Load the draft's job sequence and the sync messages for the file.
    4. The caller redirects while the job sequence is still running.
    5. Outcome flags: `did_save`/`did_sync` from the job data (legacy
       sequences count as neither, with a warning).
    6. Conflict flags: a draft that was not saved and differs from disk sets
       `alert_choice`; otherwise the editable contents default to disk.

Hashes:
    SHA-256 hex digest of the base64 encoding of the UTF-8 text, so the value
    posted back by the browser (base64) can be hashed without decoding.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
import hashlib
import logging
import posixpath
from pathlib import Path
from typing import Optional

from backend.authoring.drafts import DRAFT_MAX_AGE_HOURS, DraftRepoProtocol
from backend.authoring.modes import get_mode_for_path
from backend.authoring.paths import FilePaths
from backend.courses.repo import CoursesRepo
from backend.courses.sync import get_errors_and_warnings_for_file_path
from backend.jobs.server_jobs import (
    STATUS_RUNNING,
    JobSequence,
    JobSequenceRepoProtocol,
    get_job_sequence_with_formatted_output,
)
from backend.storage.ports import FileStore


logger = logging.getLogger("tessera.authoring.file_editor")

FILE_EDIT_TYPE = "instructor_file_edit"


class BinaryFileError(Exception):
    def __init__(self) -> None:
        super().__init__("Cannot edit binary file")


@dataclass
class FileEdit:
    user_id: str
    authn_user_id: str
    course_id: str
    course_path: str
    dir_name: str
    file_name: str
    file_name_for_display: str
    ace_mode: str
    job_sequence: Optional[JobSequence] = None
    job_sequence_id: Optional[str] = None
    disk_contents: Optional[str] = None
    disk_hash: Optional[str] = None
    sync_errors: Optional[str] = None
    sync_warnings: Optional[str] = None
    alert_choice: bool = False
    did_save: bool = False
    did_sync: bool = False
    file_id: Optional[str] = None
    edit_id: Optional[str] = None
    edit_contents: Optional[str] = None
    edit_hash: Optional[str] = None
    orig_hash: Optional[str] = None
    alert_results: bool = False
    has_same_hash: bool = False

    @property
    def job_running(self) -> bool:
        return self.job_sequence is not None and self.job_sequence.status == STATUS_RUNNING


def b64_encode_unicode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def b64_decode_unicode(encoded: str) -> str:
    """Decode base64 UTF-8 text; raises ValueError on malformed input."""
    try:
        return base64.b64decode((encoded or "").encode("ascii"), validate=True).decode("utf-8")
    except (ValueError, UnicodeError) as exc:
        raise ValueError("invalid_file_edit_contents") from exc


def get_hash(contents: str) -> str:
    return hashlib.sha256(contents.encode("utf-8")).hexdigest()


def is_binary_contents(data: bytes) -> bool:
    """Heuristic: NUL bytes in the first 8 KiB, or not valid UTF-8."""
    if b"\x00" in data[:8192]:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def new_file_edit(*, user_id: str, authn_user_id: str, course_id: str, paths: FilePaths) -> FileEdit:
    rel = paths.working_path_relative_to_course
    return FileEdit(
        user_id=user_id,
        authn_user_id=authn_user_id,
        course_id=course_id,
        course_path=paths.course_path,
        dir_name=posixpath.dirname(rel) or ".",
        file_name=posixpath.basename(rel),
        file_name_for_display=posixpath.normpath(rel),
        ace_mode=get_mode_for_path(rel),
    )


def read_draft_edit(file_edit: FileEdit, *, drafts: DraftRepoProtocol, file_store: FileStore) -> None:
    """Consume the active draft for the file (if any) into `file_edit`."""
    key = dict(
        user_id=file_edit.user_id,
        course_id=file_edit.course_id,
        dir_name=file_edit.dir_name,
        file_name=file_edit.file_name,
    )
    draft = drafts.select_file_edit(**key)
    if draft is None:
        logger.debug("no saved drafts for %s", file_edit.file_name_for_display)
    elif draft.age < DRAFT_MAX_AGE_HOURS:
        file_edit.edit_id = draft.id
        file_edit.orig_hash = draft.orig_hash
        file_edit.job_sequence_id = draft.job_sequence_id
        file_edit.file_id = draft.file_id
    else:
        logger.debug("rejected draft id=%s age=%.1fh", draft.id, draft.age)

    # Soft-delete before reading so an unreadable draft cannot trap the user.
    deleted = drafts.soft_delete_file_edit(**key)
    logger.debug("soft-deleted %s drafts", len(deleted))
    for row in deleted:
        if row.file_id is None:
            continue
        if file_edit.file_id is not None and row.file_id == file_edit.file_id:
            continue
        file_store.delete_file(row.file_id, file_edit.user_id)

    if file_edit.edit_id and file_edit.file_id:
        _, contents = file_store.get_file(file_edit.file_id)
        file_edit.edit_contents = b64_encode_unicode(contents.decode("utf-8"))
        file_edit.edit_hash = get_hash(file_edit.edit_contents)
        file_store.delete_file(file_edit.file_id, file_edit.user_id)


def write_draft_edit(
    *,
    drafts: DraftRepoProtocol,
    file_store: FileStore,
    user_id: str,
    authn_user_id: str,
    course_id: str,
    dir_name: str,
    file_name: str,
    orig_hash: str,
    edit_contents: str,
) -> str:
    """Replace any active draft for the key with `edit_contents`; return the new draft id."""
    decoded = b64_decode_unicode(edit_contents)
    deleted = drafts.soft_delete_file_edit(
        user_id=user_id, course_id=course_id, dir_name=dir_name, file_name=file_name
    )
    for row in deleted:
        if row.file_id is not None:
            file_store.delete_file(row.file_id, user_id)
    logger.debug("replaced %s drafts", len(deleted))

    file_id = file_store.upload_file(
        display_filename=file_name,
        contents=decoded.encode("utf-8"),
        type=FILE_EDIT_TYPE,
        user_id=user_id,
        authn_user_id=authn_user_id,
    )
    edit_id = drafts.insert_file_edit(
        user_id=user_id,
        course_id=course_id,
        dir_name=dir_name,
        file_name=file_name,
        orig_hash=orig_hash,
        file_id=file_id,
    )
    logger.debug("created draft id=%s file_id=%s", edit_id, file_id)
    return edit_id


def update_job_sequence_id(drafts: DraftRepoProtocol, edit_id: str, job_sequence_id: str) -> None:
    drafts.update_job_sequence_id(id=edit_id, job_sequence_id=job_sequence_id)
    logger.debug("draft id=%s job_sequence_id=%s", edit_id, job_sequence_id)


def load_file_edit(
    file_edit: FileEdit,
    *,
    paths: FilePaths,
    drafts: DraftRepoProtocol,
    file_store: FileStore,
    jobs: JobSequenceRepoProtocol,
    courses: CoursesRepo,
) -> FileEdit:
    """Steps 1-3 of the read path. Raises `BinaryFileError` for binary files."""
    read_draft_edit(file_edit, drafts=drafts, file_store=file_store)

    raw = Path(paths.working_path).read_bytes()
    if is_binary_contents(raw):
        raise BinaryFileError()
    file_edit.disk_contents = b64_encode_unicode(raw.decode("utf-8"))
    file_edit.disk_hash = get_hash(file_edit.disk_contents)

    if file_edit.job_sequence_id is not None:
        file_edit.job_sequence = get_job_sequence_with_formatted_output(
            jobs, file_edit.job_sequence_id, file_edit.course_id
        )

    errors, warnings = get_errors_and_warnings_for_file_path(
        courses, file_edit.course_id, paths.working_path_relative_to_course
    )
    file_edit.sync_errors = errors
    file_edit.sync_warnings = warnings
    return file_edit


def reconcile_file_edit(file_edit: FileEdit) -> FileEdit:
    """Steps 5-6 of the read path; call only when the job is not running."""
    seq = file_edit.job_sequence
    if seq is not None:
        if seq.legacy:
            logger.warning(
                "Found a legacy job sequence (id=%s) in a file edit (id=%s)",
                file_edit.job_sequence_id,
                file_edit.edit_id,
            )
        elif seq.jobs:
            data = seq.jobs[0].data or {}
            if data.get("saveSucceeded"):
                file_edit.did_save = True
                if data.get("syncSucceeded"):
                    file_edit.did_sync = True

    if file_edit.edit_id:
        file_edit.alert_results = True
        if not file_edit.did_save and file_edit.edit_hash != file_edit.disk_hash:
            file_edit.alert_choice = True
            file_edit.has_same_hash = file_edit.orig_hash == file_edit.disk_hash

    if not file_edit.alert_choice:
        file_edit.edit_contents = file_edit.disk_contents
        file_edit.orig_hash = file_edit.disk_hash
    return file_edit


__all__ = [
    "FILE_EDIT_TYPE",
    "BinaryFileError",
    "FileEdit",
    "b64_encode_unicode",
    "b64_decode_unicode",
    "get_hash",
    "is_binary_contents",
    "new_file_edit",
    "read_draft_edit",
    "write_draft_edit",
    "update_job_sequence_id",
    "load_file_edit",
    "reconcile_file_edit",
]
