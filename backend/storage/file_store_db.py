"""
Postgres-backed file store: metadata in `files`, contents on local disk.

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- Contents live under `root/<storage_key>`; the key is derived from the file
  id, so a row is never reused for different contents.
- Soft delete: `deleted_at`/`deleted_by` are set and the content file is
  removed; the row stays for auditing.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

try:
    import psycopg
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional in some dev envs
    psycopg = None  # type: ignore
    HAVE_PSYCOPG = False

from backend.storage.config import get_database_dsn, get_file_store_root, get_max_file_bytes
from backend.storage.keys import make_file_key
from backend.storage.ports import FileNotFoundInStore, FileTooLarge, StoredFile


logger = logging.getLogger("tessera.storage")

_TS = "to_char({col} at time zone 'utc', 'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"')"


class DBFileStore:
    def __init__(self, dsn: Optional[str] = None, root: Optional[str] = None) -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBFileStore")
        self._dsn = dsn or get_database_dsn()
        if not self._dsn:
            raise RuntimeError("Database DSN unavailable for DBFileStore")
        root = root or get_file_store_root()
        if not root:
            raise RuntimeError("TESSERA_FILE_STORE_ROOT is required for DBFileStore")
        self._root = Path(root)

    def _content_path(self, storage_key: str) -> Path:
        path = (self._root / storage_key).resolve()
        if self._root.resolve() not in path.parents:
            raise ValueError("invalid_storage_key")
        return path

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
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("select gen_random_uuid()::text")
                file_id = cur.fetchone()[0]
                storage_key = make_file_key(file_type=type, file_id=file_id, display_filename=display_filename)
                path = self._content_path(storage_key)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(contents)
                try:
                    cur.execute(
                        """
                        insert into files (id, display_filename, type, user_id, authn_user_id, storage_key, size_bytes)
                        values (%s::uuid, %s, %s, %s, %s, %s, %s)
                        """,
                        (file_id, display_filename, type, user_id, authn_user_id, storage_key, len(contents)),
                    )
                    conn.commit()
                except Exception:
                    path.unlink(missing_ok=True)
                    raise
        logger.debug("file uploaded id=%s type=%s size=%s", file_id, type, len(contents))
        return file_id

    def get_file(self, file_id: str) -> tuple[StoredFile, bytes]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select id::text, display_filename, type, user_id, authn_user_id,
                           storage_key, size_bytes, {_TS.format(col="created_at")}
                      from files
                     where id::text = %s and deleted_at is null
                    """,
                    (file_id,),
                )
                row = cur.fetchone()
        if not row:
            raise FileNotFoundInStore(file_id)
        meta = StoredFile(
            id=row[0],
            display_filename=row[1],
            type=row[2],
            user_id=row[3],
            authn_user_id=row[4],
            storage_key=row[5],
            size_bytes=int(row[6]),
            created_at=row[7],
        )
        try:
            contents = self._content_path(meta.storage_key).read_bytes()
        except FileNotFoundError:
            raise FileNotFoundInStore(file_id)
        return meta, contents

    def delete_file(self, file_id: str, authn_user_id: Optional[str]) -> None:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    update files
                       set deleted_at = now(), deleted_by = %s
                     where id::text = %s and deleted_at is null
                    returning storage_key
                    """,
                    (authn_user_id, file_id),
                )
                row = cur.fetchone()
                conn.commit()
        if not row:
            raise FileNotFoundInStore(file_id)
        try:
            os.remove(self._content_path(row[0]))
        except FileNotFoundError:
            logger.warning("file contents already missing id=%s", file_id)
        logger.debug("file deleted id=%s by=%s", file_id, authn_user_id)


__all__ = ["DBFileStore", "HAVE_PSYCOPG"]
