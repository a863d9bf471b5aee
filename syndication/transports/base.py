"""Transport abstractions: capability interfaces and template base classes."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..errors import TransportError
from ..models import RECORD_DEFAULTS, ContentItem, NormalizedRecord, TransportKind

logger = logging.getLogger(__name__)

ContentLoader = Callable[[int], Optional[ContentItem]]
ArgsFilter = Callable[[Dict[str, Any]], Dict[str, Any]]
RecordsFilter = Callable[[List[NormalizedRecord]], List[NormalizedRecord]]
PayloadFilter = Callable[[Dict[str, Any], ContentItem], Optional[Dict[str, Any]]]


class PullCapable(ABC):
    """Interface of transports that can read content from an endpoint."""

    @abstractmethod
    def pull(self, args: Optional[Dict[str, Any]] = None) -> List[NormalizedRecord]:
        """Fetch records from the endpoint."""

    @abstractmethod
    def get_post(self, remote_id: int) -> Optional[NormalizedRecord]:
        """Fetch a single remote record."""

    @abstractmethod
    def is_post_exists(self, remote_id: int) -> bool:
        """Check whether a remote record exists."""

    @abstractmethod
    def test_connection(self) -> bool:
        """Check that the endpoint is reachable with the configured settings."""


class PushCapable(ABC):
    """Interface of transports that can write content to an endpoint."""

    @abstractmethod
    def push(self, content_id: int) -> Optional[int]:
        """Create a remote copy; returns the remote id, or None if filtered out."""

    @abstractmethod
    def update(self, content_id: int, remote_id: int) -> Optional[int]:
        """Update a remote copy; returns the content id, or None if filtered out."""

    @abstractmethod
    def delete(self, remote_id: int) -> bool:
        """Delete a remote copy."""

    @abstractmethod
    def is_post_exists(self, remote_id: int) -> bool:
        """Check whether a remote record exists."""

    @abstractmethod
    def test_connection(self) -> bool:
        """Check that the endpoint is reachable with the configured settings."""


class TransportHooks:
    """
    Externally registered filters applied by every transport.

    Filters run in registration order; each receives the output of the previous one.
    A pre-push or pre-update filter returning None skips the write.
    """

    def __init__(
        self,
        args_filters: Optional[List[ArgsFilter]] = None,
        records_filters: Optional[List[RecordsFilter]] = None,
        pre_push_filters: Optional[List[PayloadFilter]] = None,
        pre_update_filters: Optional[List[PayloadFilter]] = None,
    ) -> None:
        self.args_filters = list(args_filters or [])
        self.records_filters = list(records_filters or [])
        self.pre_push_filters = list(pre_push_filters or [])
        self.pre_update_filters = list(pre_update_filters or [])

    def apply_args(self, args: Dict[str, Any]) -> Dict[str, Any]:
        for hook in self.args_filters:
            args = hook(args)
        return args

    def apply_records(self, records: List[NormalizedRecord]) -> List[NormalizedRecord]:
        for hook in self.records_filters:
            records = hook(records)
        return records

    def apply_pre_push(self, payload: Dict[str, Any], item: ContentItem) -> Optional[Dict[str, Any]]:
        return self._apply_payload(self.pre_push_filters, payload, item)

    def apply_pre_update(self, payload: Dict[str, Any], item: ContentItem) -> Optional[Dict[str, Any]]:
        return self._apply_payload(self.pre_update_filters, payload, item)

    @staticmethod
    def _apply_payload(
        hooks: List[PayloadFilter], payload: Dict[str, Any], item: ContentItem
    ) -> Optional[Dict[str, Any]]:
        for hook in hooks:
            payload = hook(payload, item)
            if payload is None:
                return None
        return payload


class TransportOptions:
    """Settings shared by every transport built by one factory."""

    def __init__(
        self,
        timeout: float = 45.0,
        user_agent: str = "syndication-engine",
        hooks: Optional[TransportHooks] = None,
        content_loader: Optional[ContentLoader] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize transport options.

        Args:
            timeout: Per-call timeout in seconds
            user_agent: User agent sent with every request
            hooks: External filters
            content_loader: Resolves content IDs for push transports
            http_transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.hooks = hooks or TransportHooks()
        self.content_loader = content_loader
        self.http_transport = http_transport

    def client(self) -> httpx.Client:
        """Create an HTTP client configured for endpoint calls."""
        return httpx.Client(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            transport=self.http_transport,
        )


class Transport:
    """Common state of all transports."""

    kind: TransportKind

    def __init__(self, endpoint_id: int, options: Optional[TransportOptions] = None) -> None:
        self.endpoint_id = endpoint_id
        self.options = options or TransportOptions()

    @property
    def hooks(self) -> TransportHooks:
        return self.options.hooks

    def client(self) -> httpx.Client:
        return self.options.client()


class PullTransport(Transport, PullCapable):
    """
    Template for pull transports.

    Subclasses implement _fetch (and optionally _get); the template applies
    argument filters, normalizes raw dicts against the record defaults and
    applies record filters.
    """

    def pull(self, args: Optional[Dict[str, Any]] = None) -> List[NormalizedRecord]:
        args = self.hooks.apply_args(self.filter_pull_args(dict(args or {})))
        records = [self.normalize(raw) for raw in self._fetch(args)]
        return self.hooks.apply_records(self.filter_records(records))

    def get_post(self, remote_id: int) -> Optional[NormalizedRecord]:
        raw = self._get(remote_id)
        return self.normalize(raw) if raw is not None else None

    def filter_pull_args(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Transport-level hook for pull arguments."""
        return args

    def filter_records(self, records: List[NormalizedRecord]) -> List[NormalizedRecord]:
        """Transport-level hook for pulled records."""
        return records

    def normalize(self, raw: Dict[str, Any]) -> NormalizedRecord:
        """Complete a raw record with defaults and validate it."""
        merged = dict(RECORD_DEFAULTS)
        merged.update({key: value for key, value in raw.items() if value is not None})
        try:
            return NormalizedRecord(**merged)
        except ValidationError as e:
            raise TransportError(f"Endpoint returned an invalid record: {e}", code="invalid-record")

    @abstractmethod
    def _fetch(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Fetch raw record dicts."""

    def _get(self, remote_id: int) -> Optional[Dict[str, Any]]:
        return None


class PushTransport(Transport, PushCapable):
    """
    Template for push transports.

    The template loads the content item, builds the payload, runs the
    pre-push/pre-update filters and hands the result to _push/_update.
    """

    def push(self, content_id: int) -> Optional[int]:
        item = self.load_content(content_id)
        payload = self.hooks.apply_pre_push(self.prepare_payload(item), item)
        if payload is None:
            logger.info("Push of content %d to endpoint %d skipped by filter", content_id, self.endpoint_id)
            return None
        return self._push(payload, item)

    def update(self, content_id: int, remote_id: int) -> Optional[int]:
        item = self.load_content(content_id)
        payload = self.hooks.apply_pre_update(self.prepare_payload(item), item)
        if payload is None:
            logger.info("Update of content %d on endpoint %d skipped by filter", content_id, self.endpoint_id)
            return None
        self._update(payload, item, remote_id)
        return content_id

    def delete(self, remote_id: int) -> bool:
        return self._delete(remote_id)

    def load_content(self, content_id: int) -> ContentItem:
        """Resolve a content ID, raising if it cannot be loaded."""
        loader = self.options.content_loader
        item = loader(content_id) if loader is not None else None
        if item is None:
            raise TransportError(f"Content {content_id} could not be loaded", code="invalid-content")
        return item

    def prepare_payload(self, item: ContentItem) -> Dict[str, Any]:
        """Transport-neutral payload; subclasses reshape it for their wire format."""
        return {
            "content_id": item.id,
            "guid": item.guid,
            "title": item.title,
            "body": item.body,
            "excerpt": item.excerpt,
            "status": item.status,
            "content_type": item.content_type,
            "published_at": item.published_at,
            "terms": {taxonomy: list(terms) for taxonomy, terms in item.terms.items()},
            "metadata": dict(item.metadata),
        }

    @abstractmethod
    def _push(self, payload: Dict[str, Any], item: ContentItem) -> int:
        """Create the remote copy; returns the remote id."""

    @abstractmethod
    def _update(self, payload: Dict[str, Any], item: ContentItem, remote_id: int) -> None:
        """Update the remote copy."""

    @abstractmethod
    def _delete(self, remote_id: int) -> bool:
        """Delete the remote copy."""
