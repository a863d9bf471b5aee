"""Content item model for syndicated content."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base import DBModel
from .record import NormalizedRecord


class Enclosure(BaseModel):
    """Attachment belonging to a content item."""

    position: int = Field(0, description="Order of the enclosure within the item")
    url: str = Field("", description="Attachment URL")

    class Config:
        """Pydantic config."""

        extra = "allow"


class ContentItem(DBModel):
    """Unit of syndicated content in the local store."""

    source_endpoint_id: Optional[int] = Field(None, description="Endpoint the item was pulled from")
    guid: str = Field("", description="Stable cross-system identifier")
    title: str = Field("", description="Title")
    body: str = Field("", description="Body")
    excerpt: str = Field("", description="Excerpt")
    status: str = Field("draft", description="Publication status")
    content_type: str = Field("post", description="Content type")
    published_at: Optional[datetime] = Field(None, description="Publication date")
    terms: Dict[str, List[str]] = Field(default_factory=dict, description="Taxonomy term assignments")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Arbitrary key/value metadata")
    enclosures: List[Enclosure] = Field(default_factory=list, description="Ordered attachments")

    @classmethod
    def from_record(cls, record: NormalizedRecord, endpoint_id: int) -> "ContentItem":
        """Build a local content item from a pulled record."""
        return cls(
            source_endpoint_id=endpoint_id,
            guid=record.guid,
            title=record.title,
            body=record.body,
            excerpt=record.excerpt,
            status=record.status,
            content_type=record.content_type,
            published_at=record.published_at,
            terms={k: list(v) for k, v in record.terms.items()},
            metadata=dict(record.metadata),
            enclosures=[Enclosure(**e) for e in record.enclosures],
        )
