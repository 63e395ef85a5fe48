"""
Draft store: unsaved editor contents keyed by (user, course, dir, file).

Invariants:
    - Rows are never hard-deleted; `soft_delete_file_edit` stamps `deleted_at`.
    - Reads consume: the editor soft-deletes every matching row right after
      `select_file_edit`, so at most one active draft exists per key.
    - Drafts older than `DRAFT_MAX_AGE_HOURS` are reported with their age and
      ignored by the editor.

The in-memory implementation takes a `clock` so tests can age drafts.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol
from uuid import uuid4


DRAFT_MAX_AGE_HOURS = 24


@dataclass
class FileEditRecord:
    id: str
    user_id: str
    course_id: str
    dir_name: str
    file_name: str
    orig_hash: str
    file_id: Optional[str]
    job_sequence_id: Optional[str]
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass
class SelectedFileEdit:
    id: str
    orig_hash: str
    file_id: Optional[str]
    job_sequence_id: Optional[str]
    age: float  # hours


@dataclass
class DeletedFileEdit:
    id: str
    file_id: Optional[str]


class DraftRepoProtocol(Protocol):
    def select_file_edit(self, *, user_id: str, course_id: str, dir_name: str, file_name: str) -> Optional[SelectedFileEdit]: ...

    def soft_delete_file_edit(self, *, user_id: str, course_id: str, dir_name: str, file_name: str) -> List[DeletedFileEdit]: ...

    def insert_file_edit(
        self, *, user_id: str, course_id: str, dir_name: str, file_name: str, orig_hash: str, file_id: str
    ) -> str: ...

    def update_job_sequence_id(self, *, id: str, job_sequence_id: str) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDraftRepo:
    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self.clock = clock
        self.rows: Dict[str, FileEditRecord] = {}

    def _matching(self, user_id: str, course_id: str, dir_name: str, file_name: str) -> List[FileEditRecord]:
        return [
            r for r in self.rows.values()
            if r.deleted_at is None
            and r.user_id == user_id
            and r.course_id == course_id
            and r.dir_name == dir_name
            and r.file_name == file_name
        ]

    def select_file_edit(self, *, user_id: str, course_id: str, dir_name: str, file_name: str) -> Optional[SelectedFileEdit]:
        rows = self._matching(user_id, course_id, dir_name, file_name)
        if not rows:
            return None
        row = max(rows, key=lambda r: r.created_at)
        age = (self.clock() - row.created_at).total_seconds() / 3600.0
        return SelectedFileEdit(
            id=row.id,
            orig_hash=row.orig_hash,
            file_id=row.file_id,
            job_sequence_id=row.job_sequence_id,
            age=age,
        )

    def soft_delete_file_edit(self, *, user_id: str, course_id: str, dir_name: str, file_name: str) -> List[DeletedFileEdit]:
        now = self.clock()
        deleted: List[DeletedFileEdit] = []
        for row in self._matching(user_id, course_id, dir_name, file_name):
            row.deleted_at = now
            deleted.append(DeletedFileEdit(id=row.id, file_id=row.file_id))
        return deleted

    def insert_file_edit(
        self, *, user_id: str, course_id: str, dir_name: str, file_name: str, orig_hash: str, file_id: str
    ) -> str:
        row = FileEditRecord(
            id=str(uuid4()),
            user_id=user_id,
            course_id=course_id,
            dir_name=dir_name,
            file_name=file_name,
            orig_hash=orig_hash,
            file_id=file_id,
            job_sequence_id=None,
            created_at=self.clock(),
        )
        self.rows[row.id] = row
        return row.id

    def update_job_sequence_id(self, *, id: str, job_sequence_id: str) -> None:
        row = self.rows.get(id)
        if row is None:
            raise LookupError(id)
        row.job_sequence_id = job_sequence_id


__all__ = [
    "DRAFT_MAX_AGE_HOURS",
    "FileEditRecord",
    "SelectedFileEdit",
    "DeletedFileEdit",
    "DraftRepoProtocol",
    "InMemoryDraftRepo",
]
