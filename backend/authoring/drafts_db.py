"""
Postgres-backed draft store (`file_edits`).

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- Draft age is computed by the database (`now() - created_at`, in hours) so
  the 24h cutoff does not depend on the web server clock.
"""
from __future__ import annotations

from typing import List, Optional

try:
    import psycopg
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional in some dev envs
    psycopg = None  # type: ignore
    HAVE_PSYCOPG = False

from backend.authoring.drafts import DeletedFileEdit, SelectedFileEdit
from backend.storage.config import get_database_dsn


class DBDraftRepo:
    def __init__(self, dsn: Optional[str] = None) -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBDraftRepo")
        self._dsn = dsn or get_database_dsn()
        if not self._dsn:
            raise RuntimeError("Database DSN unavailable for DBDraftRepo")

    def select_file_edit(self, *, user_id: str, course_id: str, dir_name: str, file_name: str) -> Optional[SelectedFileEdit]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    select id::text, orig_hash, file_id::text, job_sequence_id::text,
                           extract(epoch from (now() - created_at)) / 3600.0 as age
                      from file_edits
                     where user_id = %s and course_id = %s and dir_name = %s and file_name = %s
                       and deleted_at is null
                     order by created_at desc
                     limit 1
                    """,
                    (user_id, course_id, dir_name, file_name),
                )
                row = cur.fetchone()
        if not row:
            return None
        return SelectedFileEdit(id=row[0], orig_hash=row[1], file_id=row[2], job_sequence_id=row[3], age=float(row[4]))

    def soft_delete_file_edit(self, *, user_id: str, course_id: str, dir_name: str, file_name: str) -> List[DeletedFileEdit]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    update file_edits
                       set deleted_at = now()
                     where user_id = %s and course_id = %s and dir_name = %s and file_name = %s
                       and deleted_at is null
                    returning id::text, file_id::text
                    """,
                    (user_id, course_id, dir_name, file_name),
                )
                rows = cur.fetchall() or []
                conn.commit()
        return [DeletedFileEdit(id=r[0], file_id=r[1]) for r in rows]

    def insert_file_edit(
        self, *, user_id: str, course_id: str, dir_name: str, file_name: str, orig_hash: str, file_id: str
    ) -> str:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    insert into file_edits (user_id, course_id, dir_name, file_name, orig_hash, file_id)
                    values (%s, %s, %s, %s, %s, %s::uuid)
                    returning id::text
                    """,
                    (user_id, course_id, dir_name, file_name, orig_hash, file_id),
                )
                row = cur.fetchone()
                conn.commit()
        return row[0]

    def update_job_sequence_id(self, *, id: str, job_sequence_id: str) -> None:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "update file_edits set job_sequence_id = %s::uuid where id::text = %s",
                    (job_sequence_id, id),
                )
                if cur.rowcount == 0:
                    raise LookupError(id)
                conn.commit()


__all__ = ["DBDraftRepo", "HAVE_PSYCOPG"]
