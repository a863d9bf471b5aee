"""Endpoint models for remote syndication targets."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base import DBModel


class TransportKind(str, Enum):
    """Transport kinds an endpoint can be configured with."""

    XML_PULL = "xml_pull"
    RSS_PULL = "rss_pull"
    REST_PUSH = "rest_push"
    XMLRPC_PUSH = "xmlrpc_push"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["TransportKind"]:
        """Resolve a raw kind string; empty or unknown kinds resolve to None."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Endpoint(DBModel):
    """Remote syndication endpoint."""

    name: str = Field(..., description="Unique endpoint name")
    transport_kind: str = Field("", description="Raw transport kind as configured")
    enabled: bool = Field(True, description="Whether the endpoint is enabled")
    settings: Dict[str, Any] = Field(
        default_factory=dict,
        description="Transport-specific settings (secrets stored encrypted)",
    )
    groups: List[str] = Field(default_factory=list, description="Group slugs the endpoint belongs to")
    consecutive_failures: int = Field(0, description="Consecutive pull failures", ge=0)
    auto_retry_count: int = Field(0, description="Auto-retries scheduled since the last success", ge=0)
    last_pull_at: Optional[datetime] = Field(None, description="Last pull attempt")

    @property
    def kind(self) -> Optional[TransportKind]:
        """Resolved transport kind."""
        return TransportKind.parse(self.transport_kind)


class EndpointGroup(BaseModel):
    """Named set of endpoints, used for selection only."""

    slug: str = Field(..., description="Group slug")
    name: str = Field("", description="Display name")


class EndpointFilter(BaseModel):
    """Criteria for enumerating endpoints."""

    ids: Optional[List[int]] = Field(None, description="Restrict to these endpoint IDs")
    enabled: Optional[bool] = Field(None, description="Restrict by enabled flag")
    kinds: Optional[List[TransportKind]] = Field(None, description="Restrict to transport kinds")
    group: Optional[str] = Field(None, description="Restrict to members of a group")

    def matches(self, endpoint: Endpoint) -> bool:
        """Check whether an endpoint satisfies the filter."""
        if self.ids is not None and endpoint.id not in self.ids:
            return False
        if self.enabled is not None and endpoint.enabled != self.enabled:
            return False
        if self.kinds is not None and endpoint.kind not in self.kinds:
            return False
        if self.group is not None and self.group not in endpoint.groups:
            return False
        return True
