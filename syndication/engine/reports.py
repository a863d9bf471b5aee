"""Result objects returned by sync cycles."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import SyncStatus


class EndpointPullResult(BaseModel):
    """Result of pulling one endpoint."""

    endpoint_id: int = Field(..., description="Endpoint ID")
    endpoint_name: str = Field("", description="Endpoint name")
    success: bool = Field(False, description="Whether the pull succeeded")
    skipped: bool = Field(False, description="Whether the endpoint was skipped")
    error: Optional[str] = Field(None, description="Error message if failed or skipped")
    created: int = Field(0, description="Items created")
    updated: int = Field(0, description="Items updated")
    unchanged: int = Field(0, description="Items already present and left alone")
    rejected: int = Field(0, description="Records that could not be stored")
    failures: int = Field(0, description="Consecutive failures after this pull")
    disabled: bool = Field(False, description="Whether this pull disabled the endpoint")


class PullReport(BaseModel):
    """Result of one pull cycle."""

    started_at: datetime = Field(..., description="Cycle start")
    finished_at: Optional[datetime] = Field(None, description="Cycle end")
    results: List[EndpointPullResult] = Field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(r.created for r in self.results)

    @property
    def updated(self) -> int:
        return sum(r.updated for r in self.results)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped)


class EndpointPushResult(BaseModel):
    """Result of syncing one content item with one endpoint."""

    endpoint_id: int = Field(..., description="Endpoint ID")
    action: str = Field(..., description="push, update, delete, drop or skip")
    status: Optional[SyncStatus] = Field(None, description="Recorded state; None when no record is kept")
    remote_id: Optional[int] = Field(None, description="Remote identifier")
    error: Optional[str] = Field(None, description="Error message, if any")


class PushReport(BaseModel):
    """Result of one push or delete cycle for a content item."""

    content_id: int = Field(..., description="Content item ID")
    success: bool = Field(True, description="Whether the cycle ran")
    error: Optional[str] = Field(None, description="Why the cycle did not run")
    results: List[EndpointPushResult] = Field(default_factory=list)

    @property
    def failed(self) -> List[EndpointPushResult]:
        return [r for r in self.results if r.error is not None]
