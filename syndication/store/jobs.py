"""Job schedule in Postgres."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from psycopg.types.json import Jsonb

from .base import JobScheduler, ScheduledJob
from .connection import get_connection

JOB_COLUMNS = "id, name, args, run_at, interval_seconds"


class PostgresJobScheduler(JobScheduler):
    """Scheduled jobs in the scheduled_jobs table."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config

    def _insert(self, name: str, run_at: Optional[datetime], args: Dict[str, Any],
                interval_seconds: Optional[int]) -> ScheduledJob:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO scheduled_jobs (name, args, run_at, interval_seconds)
                    VALUES (%s, %s, COALESCE(%s, now()), %s)
                    RETURNING {JOB_COLUMNS}
                    """,
                    (name, Jsonb(args), run_at, interval_seconds),
                )
                row = cur.fetchone()
            conn.commit()
        return ScheduledJob.model_validate(row)

    def schedule_once(self, name: str, run_at: datetime, args: Optional[Dict[str, Any]] = None) -> ScheduledJob:
        return self._insert(name, run_at, dict(args or {}), None)

    def schedule_recurring(
        self,
        name: str,
        interval_seconds: int,
        args: Optional[Dict[str, Any]] = None,
        first_run: Optional[datetime] = None,
    ) -> ScheduledJob:
        return self._insert(name, first_run, dict(args or {}), interval_seconds)

    def clear(self, name: str, args: Optional[Dict[str, Any]] = None) -> int:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                if args is None:
                    cur.execute("DELETE FROM scheduled_jobs WHERE name = %s", (name,))
                else:
                    cur.execute(
                        "DELETE FROM scheduled_jobs WHERE name = %s AND args = %s",
                        (name, Jsonb(args)),
                    )
                removed = cur.rowcount
            conn.commit()
        return removed

    def jobs(self, name: Optional[str] = None) -> List[ScheduledJob]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                if name is None:
                    cur.execute(f"SELECT {JOB_COLUMNS} FROM scheduled_jobs ORDER BY run_at")
                else:
                    cur.execute(
                        f"SELECT {JOB_COLUMNS} FROM scheduled_jobs WHERE name = %s ORDER BY run_at",
                        (name,),
                    )
                rows = cur.fetchall()
        return [ScheduledJob.model_validate(row) for row in rows]

    def claim_due(self, now: datetime) -> List[ScheduledJob]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    DELETE FROM scheduled_jobs
                    WHERE run_at <= %s AND interval_seconds IS NULL
                    RETURNING {JOB_COLUMNS}
                    """,
                    (now,),
                )
                once = cur.fetchall()
                cur.execute(
                    f"""
                    UPDATE scheduled_jobs old
                    SET run_at = %s + old.interval_seconds * interval '1 second'
                    FROM (
                        SELECT id, run_at FROM scheduled_jobs
                        WHERE run_at <= %s AND interval_seconds IS NOT NULL
                        FOR UPDATE SKIP LOCKED
                    ) due
                    WHERE old.id = due.id
                    RETURNING old.id, old.name, old.args, due.run_at, old.interval_seconds
                    """,
                    (now, now),
                )
                recurring = cur.fetchall()
            conn.commit()
        jobs = [ScheduledJob.model_validate(row) for row in once + recurring]
        return sorted(jobs, key=lambda job: job.run_at)
