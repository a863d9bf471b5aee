"""XML feed pull transport driven by a declarative mapping."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from lxml import etree

from ..errors import FeedFetchError, FeedParseError, TransportError
from ..mapping import FeedMapper, FeedMapping
from ..models import TransportKind
from .base import PullTransport, TransportOptions
from .settings import XmlPullSettings

logger = logging.getLogger(__name__)


class XmlPullTransport(PullTransport):
    """Fetch an XML document and map its nodes to records."""

    kind = TransportKind.XML_PULL

    def __init__(
        self,
        endpoint_id: int,
        url: str,
        mapping: FeedMapping,
        options: Optional[TransportOptions] = None,
    ) -> None:
        super().__init__(endpoint_id, options)
        self.url = url
        self.mapper = FeedMapper(mapping)

    @classmethod
    def from_settings(
        cls, endpoint_id: int, settings: XmlPullSettings, options: TransportOptions
    ) -> "XmlPullTransport":
        return cls(endpoint_id, settings.url, settings.mapping, options)

    def fetch_document(self) -> bytes:
        """Download the raw document."""
        try:
            with self.client() as client:
                response = client.get(self.url)
        except httpx.HTTPError as e:
            raise FeedFetchError(f"Failed to fetch remote URL {self.url}: {e}")

        if response.status_code != 200:
            raise FeedFetchError(
                f"Failed to fetch remote URL; HTTP code: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    @staticmethod
    def parse_document(content: bytes) -> etree._Element:
        """Parse a document without resolving entities or touching the network."""
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            root = etree.fromstring(content, parser)
        except etree.XMLSyntaxError as e:
            raise FeedParseError(f"Failed to parse feed document: {e}")
        if root is None:
            raise FeedParseError("Feed document is empty")
        return root

    def _fetch(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        document = self.parse_document(self.fetch_document())
        records = self.mapper.map(document)
        logger.info("Parsed feed %s, received %d items", self.url, len(records))
        return records

    def is_post_exists(self, remote_id: int) -> bool:
        # Feeds have no addressable remote items
        return False

    def test_connection(self) -> bool:
        try:
            self.fetch_document()
        except TransportError as e:
            logger.warning("Connection test for endpoint %d failed: %s", self.endpoint_id, e)
            return False
        return True
