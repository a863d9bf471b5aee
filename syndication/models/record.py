"""Normalized record returned by pull transports."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

RECORD_DEFAULTS: Dict[str, Any] = {
    "title": "",
    "body": "",
    "excerpt": "",
    "status": "draft",
    "content_type": "post",
    "remote_id": 0,
    "guid": "",
}


class NormalizedRecord(BaseModel):
    """Transport-agnostic representation of one remote content item."""

    title: str = Field("", description="Title")
    body: str = Field("", description="Body")
    excerpt: str = Field("", description="Excerpt")
    status: str = Field("draft", description="Publication status")
    content_type: str = Field("post", description="Content type")
    remote_id: int = Field(0, description="Endpoint-local identifier, 0 when unknown")
    guid: str = Field("", description="Stable cross-system identifier")
    published_at: Optional[datetime] = Field(None, description="Publication date")
    terms: Dict[str, List[str]] = Field(default_factory=dict, description="Taxonomy terms")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Metadata")
    enclosures: List[Dict[str, Any]] = Field(default_factory=list, description="Enclosures")
