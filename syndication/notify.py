"""Operator notifications for endpoint and syndication events."""

import logging
from typing import Callable, Iterable, List, Optional

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENDPOINT_DISABLED = "endpoint_disabled"
FEED_ERROR = "feed_error"
PUSH_FAILURE = "push_failure"
CONTENT_CREATED = "content_created"
CONTENT_UPDATED = "content_updated"
CONTENT_DELETED = "content_deleted"


class NotificationEvent(BaseModel):
    """Human-readable notification."""

    kind: str = Field(..., description="Event kind")
    message: str = Field(..., description="Human-readable message")
    level: int = Field(logging.INFO, description="Logging level")
    endpoint_id: Optional[int] = Field(None, description="Endpoint involved")
    content_id: Optional[int] = Field(None, description="Content item involved")


NotificationSink = Callable[[NotificationEvent], None]


class Notifier:
    """Dispatch notifications to the log, a webhook and any extra sinks."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        webhook_events: Optional[Iterable[str]] = None,
        sinks: Optional[List[NotificationSink]] = None,
        timeout: float = 10.0,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize notifier."""
        self.webhook_url = webhook_url
        self.webhook_events = set(webhook_events or (ENDPOINT_DISABLED, FEED_ERROR, PUSH_FAILURE))
        self.sinks = list(sinks or [])
        self.timeout = timeout
        self.http_transport = http_transport

    def notify(
        self,
        kind: str,
        message: str,
        level: int = logging.INFO,
        endpoint_id: Optional[int] = None,
        content_id: Optional[int] = None,
    ) -> NotificationEvent:
        """Emit a notification."""
        event = NotificationEvent(
            kind=kind,
            message=message,
            level=level,
            endpoint_id=endpoint_id,
            content_id=content_id,
        )
        logger.log(level, "%s: %s", kind, message)

        for sink in self.sinks:
            sink(event)

        if self.webhook_url and kind in self.webhook_events:
            self._post_webhook(event)

        return event

    def endpoint_disabled(self, endpoint_id: int, name: str, failures: int) -> NotificationEvent:
        """Endpoint was disabled by the failure monitor."""
        return self.notify(
            ENDPOINT_DISABLED,
            f"Endpoint '{name}' disabled after {failures} pull failure(s).",
            level=logging.ERROR,
            endpoint_id=endpoint_id,
        )

    def feed_error(self, endpoint_id: int, name: str, error: str) -> NotificationEvent:
        """Feed could not be fetched, parsed or mapped."""
        return self.notify(
            FEED_ERROR,
            f"Feed error on endpoint '{name}': {error}",
            level=logging.WARNING,
            endpoint_id=endpoint_id,
        )

    def push_failure(self, content_id: int, endpoint_id: int, status: str, error: str) -> NotificationEvent:
        """A push, update or delete was rejected."""
        return self.notify(
            PUSH_FAILURE,
            f"Content {content_id} on endpoint {endpoint_id} is now {status}: {error}",
            level=logging.ERROR,
            endpoint_id=endpoint_id,
            content_id=content_id,
        )

    def content_event(self, kind: str, content_id: int, endpoint_id: int) -> NotificationEvent:
        """Content was created, updated or deleted by a sync cycle."""
        verbs = {
            CONTENT_CREATED: "created",
            CONTENT_UPDATED: "updated",
            CONTENT_DELETED: "deleted",
        }
        return self.notify(
            kind,
            f"Content {content_id} {verbs.get(kind, kind)} via endpoint {endpoint_id}",
            level=logging.INFO,
            endpoint_id=endpoint_id,
            content_id=content_id,
        )

    def _post_webhook(self, event: NotificationEvent) -> None:
        """Post a Slack-compatible message."""
        payload = {"text": f"*Syndication {event.kind.replace('_', ' ')}*\n{event.message}"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.http_transport) as client:
                response = client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Webhook notification failed: %s", e)
