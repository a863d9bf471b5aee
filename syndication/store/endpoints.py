"""Endpoint storage in Postgres."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..config import EndpointConfig
from ..errors import StoreError
from ..models import Endpoint, EndpointFilter
from .base import EndpointStore
from .connection import get_connection

ENDPOINT_SELECT = """
    SELECT e.*,
           COALESCE(
               array_agg(g.group_slug ORDER BY g.group_slug) FILTER (WHERE g.group_slug IS NOT NULL),
               '{}'
           ) AS groups
    FROM endpoints e
    LEFT JOIN endpoint_groups g ON g.endpoint_id = e.id
"""


def row_to_endpoint(row: Dict[str, Any]) -> Endpoint:
    """Build an endpoint from a database row."""
    return Endpoint.model_validate(row)


class PostgresEndpointStore(EndpointStore):
    """Endpoints, group membership and counters."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config

    def get_endpoint(self, endpoint_id: int) -> Optional[Endpoint]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(f"{ENDPOINT_SELECT} WHERE e.id = %s GROUP BY e.id", (endpoint_id,))
                row = cur.fetchone()
        return row_to_endpoint(row) if row else None

    def enumerate_endpoints(self, endpoint_filter: Optional[EndpointFilter] = None) -> List[Endpoint]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(f"{ENDPOINT_SELECT} GROUP BY e.id ORDER BY e.name")
                rows = cur.fetchall()
        endpoints = [row_to_endpoint(row) for row in rows]
        if endpoint_filter is not None:
            endpoints = [e for e in endpoints if endpoint_filter.matches(e)]
        return endpoints

    def save_endpoint(self, endpoint: Endpoint) -> int:
        with get_connection(self.db_config) as conn:
            endpoint_id = self._upsert(conn, endpoint.name, endpoint.transport_kind, endpoint.enabled,
                                       endpoint.settings, endpoint.groups, overwrite_enabled=True)
            conn.commit()
        return endpoint_id

    def sync_endpoints(self, conn: Connection, endpoints: List[EndpointConfig]) -> Dict[str, int]:
        """
        Sync endpoints from config to database.

        The enabled flag is only written for new endpoints; endpoints disabled
        by the failure monitor stay disabled until explicitly re-enabled.

        Returns:
            Mapping of endpoint name to database ID
        """
        endpoint_map = {}
        for endpoint in endpoints:
            endpoint_map[endpoint.name] = self._upsert(
                conn, endpoint.name, endpoint.transport_kind, endpoint.enabled,
                endpoint.settings, endpoint.groups, overwrite_enabled=False,
            )
        conn.commit()
        return endpoint_map

    def _upsert(
        self,
        conn: Connection,
        name: str,
        transport_kind: str,
        enabled: bool,
        settings: Dict[str, Any],
        groups: List[str],
        overwrite_enabled: bool,
    ) -> int:
        enabled_clause = "enabled = EXCLUDED.enabled," if overwrite_enabled else ""
        with conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO endpoints (name, transport_kind, enabled, settings)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (name) DO UPDATE SET
                    transport_kind = EXCLUDED.transport_kind,
                    {enabled_clause}
                    settings = EXCLUDED.settings
                RETURNING id
                """,
                (name, transport_kind, enabled, Jsonb(settings)),
            )
            endpoint_id = cur.fetchone()["id"]

            cur.execute("DELETE FROM endpoint_groups WHERE endpoint_id = %s", (endpoint_id,))
            for group in sorted(set(groups)):
                cur.execute(
                    "INSERT INTO endpoint_groups (endpoint_id, group_slug) VALUES (%s, %s)",
                    (endpoint_id, group),
                )
        return endpoint_id

    def remove_endpoint(self, endpoint_id: int) -> bool:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM endpoints WHERE id = %s", (endpoint_id,))
                removed = cur.rowcount > 0
            conn.commit()
        return removed

    def set_enabled(self, endpoint_id: int, enabled: bool) -> None:
        self._update_one(
            "UPDATE endpoints SET enabled = %s, consecutive_failures = 0 WHERE id = %s RETURNING id",
            (enabled, endpoint_id),
            endpoint_id,
        )

    def record_pull_failure(self, endpoint_id: int) -> int:
        row = self._update_one(
            """
            UPDATE endpoints SET consecutive_failures = consecutive_failures + 1
            WHERE id = %s
            RETURNING consecutive_failures
            """,
            (endpoint_id,),
            endpoint_id,
        )
        return row["consecutive_failures"]

    def record_pull_success(self, endpoint_id: int) -> None:
        self._update_one(
            "UPDATE endpoints SET consecutive_failures = 0, auto_retry_count = 0 WHERE id = %s RETURNING id",
            (endpoint_id,),
            endpoint_id,
        )

    def claim_auto_retry(self, endpoint_id: int, limit: int) -> Optional[int]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE endpoints SET auto_retry_count = auto_retry_count + 1
                    WHERE id = %s AND auto_retry_count < %s
                    RETURNING auto_retry_count
                    """,
                    (endpoint_id, limit),
                )
                row = cur.fetchone()
                if row is None:
                    cur.execute("UPDATE endpoints SET auto_retry_count = 0 WHERE id = %s", (endpoint_id,))
            conn.commit()
        return row["auto_retry_count"] if row else None

    def disable_endpoint(self, endpoint_id: int) -> bool:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE endpoints
                    SET enabled = FALSE, consecutive_failures = 0, auto_retry_count = 0
                    WHERE id = %s AND enabled
                    RETURNING id
                    """,
                    (endpoint_id,),
                )
                row = cur.fetchone()
            conn.commit()
        return row is not None

    def mark_pulled(self, endpoint_id: int, when: datetime) -> None:
        self._update_one(
            "UPDATE endpoints SET last_pull_at = %s WHERE id = %s RETURNING id",
            (when, endpoint_id),
            endpoint_id,
        )

    def _update_one(self, query: str, params: tuple, endpoint_id: int) -> Dict[str, Any]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise StoreError(f"Endpoint {endpoint_id} does not exist")
        return row
