"""RSS/Atom pull transport."""

import logging
import calendar
from typing import Any, Dict, List, Optional

import feedparser
import httpx
import pendulum

from ..errors import FeedFetchError, FeedParseError, TransportError
from ..models import TransportKind
from .base import PullTransport, TransportOptions
from .settings import RssPullSettings

logger = logging.getLogger(__name__)


class RssPullTransport(PullTransport):
    """Fetch and parse RSS/Atom feeds."""

    kind = TransportKind.RSS_PULL

    def __init__(
        self,
        endpoint_id: int,
        feed_url: str,
        default_content_type: str = "post",
        default_status: str = "draft",
        import_categories: bool = False,
        options: Optional[TransportOptions] = None,
    ) -> None:
        super().__init__(endpoint_id, options)
        self.feed_url = feed_url
        self.default_content_type = default_content_type
        self.default_status = default_status
        self.import_categories = import_categories

    @classmethod
    def from_settings(
        cls, endpoint_id: int, settings: RssPullSettings, options: TransportOptions
    ) -> "RssPullTransport":
        return cls(
            endpoint_id,
            settings.feed_url,
            default_content_type=settings.default_content_type,
            default_status=settings.default_status,
            import_categories=settings.import_categories,
            options=options,
        )

    def fetch_feed(self) -> str:
        """Download the feed body."""
        try:
            with self.client() as client:
                response = client.get(self.feed_url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FeedFetchError(f"HTTP error: {e}", status_code=e.response.status_code)
        except httpx.HTTPError as e:
            raise FeedFetchError(f"HTTP error: {e}")
        return response.text

    def _fetch(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        feed = feedparser.parse(self.fetch_feed())

        # feedparser flags recoverable problems too; only give up when nothing was read
        if feed.bozo and not feed.entries:
            raise FeedParseError(f"Invalid RSS feed: {feed.bozo_exception}")

        entries = feed.entries
        max_items = args.get("max_items")
        if max_items:
            entries = entries[:max_items]

        records = [self._entry_to_record(entry) for entry in entries]
        logger.info("Parsed feed %s, received %d items", self.feed_url, len(records))
        return records

    def _entry_to_record(self, entry: Any) -> Dict[str, Any]:
        """Convert a feedparser entry to a raw record dict."""
        published = None
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            published = pendulum.from_timestamp(calendar.timegm(parsed))

        summary = entry.get("summary", "")
        body = summary
        if entry.get("content"):
            body = entry.content[0].get("value", summary)

        link = entry.get("link", "")
        terms = {}
        if self.import_categories:
            categories = [tag.get("term") for tag in entry.get("tags", []) if tag.get("term")]
            if categories:
                terms["category"] = categories

        return {
            "title": entry.get("title", ""),
            "body": body,
            "excerpt": summary,
            "status": self.default_status,
            "content_type": self.default_content_type,
            "guid": entry.get("id") or link,
            "published_at": published,
            "terms": terms,
            "metadata": {"source_url": link} if link else {},
        }

    def is_post_exists(self, remote_id: int) -> bool:
        return False

    def test_connection(self) -> bool:
        try:
            self.fetch_feed()
        except TransportError as e:
            logger.warning("Connection test for endpoint %d failed: %s", self.endpoint_id, e)
            return False
        return True
