"""Content item storage in Postgres."""

from typing import Any, Dict, Optional

from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from ..errors import StoreError
from ..models import ContentItem, SyncStateMap
from .base import ContentStore
from .connection import get_connection

CONTENT_COLUMNS = (
    "id, source_endpoint_id, guid, title, body, excerpt, status, content_type, "
    "published_at, terms, metadata, enclosures, created_at, updated_at"
)


def row_to_content(row: Dict[str, Any]) -> ContentItem:
    """Build a content item from a database row."""
    return ContentItem.model_validate(row)


def content_params(item: ContentItem) -> Dict[str, Any]:
    """Query parameters for an item's stored fields."""
    return {
        "source_endpoint_id": item.source_endpoint_id,
        "guid": item.guid,
        "title": item.title,
        "body": item.body,
        "excerpt": item.excerpt,
        "status": item.status,
        "content_type": item.content_type,
        "published_at": item.published_at,
        "terms": Jsonb(item.terms),
        "metadata": Jsonb(item.metadata),
        "enclosures": Jsonb([enclosure.model_dump() for enclosure in item.enclosures]),
    }


class PostgresContentStore(ContentStore):
    """Content items and sync states in the content_items table."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config

    def get_content(self, content_id: int) -> Optional[ContentItem]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {CONTENT_COLUMNS} FROM content_items WHERE id = %s", (content_id,))
                row = cur.fetchone()
        return row_to_content(row) if row else None

    def find_content_by_remote_guid(self, endpoint_id: int, guid: str) -> Optional[ContentItem]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT {CONTENT_COLUMNS} FROM content_items
                    WHERE source_endpoint_id = %s AND guid = %s
                    LIMIT 1
                    """,
                    (endpoint_id, guid),
                )
                row = cur.fetchone()
        return row_to_content(row) if row else None

    def create_content(self, item: ContentItem) -> int:
        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO content_items (
                            source_endpoint_id, guid, title, body, excerpt, status,
                            content_type, published_at, terms, metadata, enclosures
                        )
                        VALUES (
                            %(source_endpoint_id)s, %(guid)s, %(title)s, %(body)s, %(excerpt)s, %(status)s,
                            %(content_type)s, %(published_at)s, %(terms)s, %(metadata)s, %(enclosures)s
                        )
                        RETURNING id
                        """,
                        content_params(item),
                    )
                    content_id = cur.fetchone()["id"]
                conn.commit()
        except UniqueViolation as e:
            raise StoreError(
                f"Content with guid '{item.guid}' already exists for endpoint {item.source_endpoint_id}"
            ) from e
        return content_id

    def update_content(self, content_id: int, item: ContentItem) -> None:
        params = content_params(item)
        params["id"] = content_id
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE content_items SET
                        source_endpoint_id = %(source_endpoint_id)s,
                        guid = %(guid)s,
                        title = %(title)s,
                        body = %(body)s,
                        excerpt = %(excerpt)s,
                        status = %(status)s,
                        content_type = %(content_type)s,
                        published_at = %(published_at)s,
                        terms = %(terms)s,
                        metadata = %(metadata)s,
                        enclosures = %(enclosures)s
                    WHERE id = %(id)s
                    """,
                    params,
                )
                updated = cur.rowcount
            conn.commit()
        if not updated:
            raise StoreError(f"Content {content_id} does not exist")

    def delete_content(self, content_id: int) -> None:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM content_items WHERE id = %s", (content_id,))
            conn.commit()

    def get_sync_states(self, content_id: int) -> SyncStateMap:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT sync_states FROM content_items WHERE id = %s", (content_id,))
                row = cur.fetchone()
        return SyncStateMap.from_layout(row["sync_states"] if row else None)

    def save_sync_states(self, content_id: int, states: SyncStateMap) -> None:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE content_items SET sync_states = %s WHERE id = %s",
                    (Jsonb(states.to_layout()), content_id),
                )
            conn.commit()
