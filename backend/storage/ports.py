"""
File store port used by the draft editor and other file-backed features.

Keep this small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


class FileNotFoundInStore(Exception):
    """Raised when a file id is unknown or the file has been deleted."""

    def __init__(self, file_id: str) -> None:
        super().__init__(f"File not found: {file_id}")
        self.file_id = file_id


class FileTooLarge(ValueError):
    pass


@dataclass
class StoredFile:
    id: str
    display_filename: str
    type: str
    user_id: Optional[str]
    authn_user_id: Optional[str]
    storage_key: str
    size_bytes: int
    created_at: str
    deleted_at: Optional[str] = None
    deleted_by: Optional[str] = None


class FileStore(Protocol):
    """Minimal interface to upload, fetch and delete stored files by id.

    Intent:
        Keep draft bodies (and similar blobs) out of the relational rows that
        reference them. Files are soft-deleted: once deleted, `get_file`
        raises `FileNotFoundInStore` for that id.

    Permissions:
        Callers enforce course/user access before touching the store.
    """

    def upload_file(
        self,
        *,
        display_filename: str,
        contents: bytes,
        type: str,
        user_id: Optional[str],
        authn_user_id: Optional[str],
    ) -> str: ...

    def get_file(self, file_id: str) -> tuple[StoredFile, bytes]: ...

    def delete_file(self, file_id: str, authn_user_id: Optional[str]) -> None: ...


__all__ = ["FileNotFoundInStore", "FileTooLarge", "StoredFile", "FileStore"]
