"""
Postgres-backed job sequence repository (`job_sequences` + `jobs`).

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- `jobs.data` is jsonb; it is written in full on every update.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

try:
    import psycopg
    from psycopg.types.json import Jsonb
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional in some dev envs
    psycopg = None  # type: ignore
    Jsonb = None  # type: ignore
    HAVE_PSYCOPG = False

from backend.jobs.server_jobs import Job, JobSequence, JobSequenceNotFound
from backend.storage.config import get_database_dsn

_TS = "to_char({col} at time zone 'utc', 'YYYY-MM-DD\"T\"HH24:MI:SS\"+00:00\"')"


class DBJobSequenceRepo:
    def __init__(self, dsn: Optional[str] = None) -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBJobSequenceRepo")
        self._dsn = dsn or get_database_dsn()
        if not self._dsn:
            raise RuntimeError("Database DSN unavailable for DBJobSequenceRepo")

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
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    insert into job_sequences (course_id, user_id, authn_user_id, type, description, status, legacy)
                    values (%s, %s, %s, %s, %s, 'Running', %s)
                    returning id::text
                    """,
                    (course_id, user_id, authn_user_id, type, description, legacy),
                )
                job_sequence_id = cur.fetchone()[0]
                cur.execute(
                    """
                    insert into jobs (job_sequence_id, number, status, data)
                    values (%s::uuid, 1, 'Running', %s)
                    returning id::text
                    """,
                    (job_sequence_id, Jsonb({})),
                )
                job_id = cur.fetchone()[0]
                conn.commit()
        return job_sequence_id, job_id

    def update_job(
        self, job_id: str, *, status: str, data: Dict[str, Any], output: str, error_message: Optional[str] = None
    ) -> None:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    update jobs
                       set status = %s, data = %s, output = %s, error_message = %s, finished_at = now()
                     where id::text = %s
                    """,
                    (status, Jsonb(dict(data)), output, error_message, job_id),
                )
                if cur.rowcount == 0:
                    raise JobSequenceNotFound(job_id)
                conn.commit()

    def finish_job_sequence(self, job_sequence_id: str, *, status: str) -> None:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "update job_sequences set status = %s, finished_at = now() where id::text = %s",
                    (status, job_sequence_id),
                )
                if cur.rowcount == 0:
                    raise JobSequenceNotFound(job_sequence_id)
                conn.commit()

    def get_job_sequence(self, job_sequence_id: str, course_id: Optional[str]) -> Optional[JobSequence]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    select id::text, course_id, user_id, authn_user_id, type, description, status, legacy,
                           {_TS.format(col="created_at")},
                           case when finished_at is null then null else {_TS.format(col="finished_at")} end
                      from job_sequences
                     where id::text = %s and course_id is not distinct from %s
                    """,
                    (job_sequence_id, course_id),
                )
                row = cur.fetchone()
                if not row:
                    return None
                cur.execute(
                    """
                    select id::text, number, status, data, coalesce(output, ''), error_message
                      from jobs
                     where job_sequence_id::text = %s
                     order by number
                    """,
                    (job_sequence_id,),
                )
                job_rows = cur.fetchall() or []
        seq = JobSequence(
            id=row[0],
            course_id=row[1],
            user_id=row[2],
            authn_user_id=row[3],
            type=row[4],
            description=row[5],
            status=row[6],
            legacy=bool(row[7]),
            created_at=row[8],
            finished_at=row[9],
        )
        for r in job_rows:
            seq.jobs.append(
                Job(
                    id=r[0],
                    job_sequence_id=seq.id,
                    number=int(r[1]),
                    status=r[2],
                    data=dict(r[3] or {}),
                    output=r[4],
                    error_message=r[5],
                )
            )
        return seq


__all__ = ["DBJobSequenceRepo", "HAVE_PSYCOPG"]
