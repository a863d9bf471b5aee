"""Lease storage in Postgres."""

import uuid
from typing import Any, Dict, Optional

from .base import LeaseStore
from .connection import get_connection


class PostgresLeaseStore(LeaseStore):
    """Leases whose expiry is judged by the database clock."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config

    def acquire(self, name: str, ttl_seconds: int) -> Optional[str]:
        token = uuid.uuid4().hex
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO leases (name, owner, expires_at)
                    VALUES (%s, %s, now() + %s * interval '1 second')
                    ON CONFLICT (name) DO UPDATE
                    SET owner = EXCLUDED.owner, expires_at = EXCLUDED.expires_at
                    WHERE leases.expires_at <= now()
                    RETURNING owner
                    """,
                    (name, token, ttl_seconds),
                )
                row = cur.fetchone()
            conn.commit()
        return row["owner"] if row else None

    def release(self, name: str, token: str) -> bool:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM leases WHERE name = %s AND owner = %s RETURNING name", (name, token))
                row = cur.fetchone()
            conn.commit()
        return row is not None

    def is_held(self, name: str) -> bool:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS held FROM leases WHERE name = %s AND expires_at > now()", (name,))
                row = cur.fetchone()
        return row is not None
