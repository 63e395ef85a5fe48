"""
In-memory file store for development and tests.

Behavior mirrors `DBFileStore`: ids are uuid4 strings, deletes are soft
(metadata kept with `deleted_at`/`deleted_by`) and deleted files can no longer
be read.
"""
from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Dict, Optional
from uuid import uuid4

from backend.storage.config import get_max_file_bytes
from backend.storage.keys import make_file_key
from backend.storage.ports import FileNotFoundInStore, FileTooLarge, StoredFile


logger = logging.getLogger("tessera.storage")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryFileStore:
    def __init__(self) -> None:
        self.files: Dict[str, StoredFile] = {}
        self._contents: Dict[str, bytes] = {}

    def upload_file(
        self,
        *,
        display_filename: str,
        contents: bytes,
        type: str,
        user_id: Optional[str],
        authn_user_id: Optional[str],
    ) -> str:
        if len(contents) > get_max_file_bytes():
            raise FileTooLarge("file_too_large")
        file_id = str(uuid4())
        self.files[file_id] = StoredFile(
            id=file_id,
            display_filename=display_filename,
            type=type,
            user_id=user_id,
            authn_user_id=authn_user_id,
            storage_key=make_file_key(file_type=type, file_id=file_id, display_filename=display_filename),
            size_bytes=len(contents),
            created_at=_now_iso(),
        )
        self._contents[file_id] = bytes(contents)
        logger.debug("file uploaded id=%s type=%s size=%s", file_id, type, len(contents))
        return file_id

    def get_file(self, file_id: str) -> tuple[StoredFile, bytes]:
        meta = self.files.get(file_id)
        if meta is None or meta.deleted_at is not None:
            raise FileNotFoundInStore(file_id)
        return meta, self._contents[file_id]

    def delete_file(self, file_id: str, authn_user_id: Optional[str]) -> None:
        meta = self.files.get(file_id)
        if meta is None or meta.deleted_at is not None:
            raise FileNotFoundInStore(file_id)
        meta.deleted_at = _now_iso()
        meta.deleted_by = authn_user_id
        self._contents.pop(file_id, None)
        logger.debug("file deleted id=%s by=%s", file_id, authn_user_id)


__all__ = ["InMemoryFileStore"]
