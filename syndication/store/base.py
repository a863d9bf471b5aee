"""Storage contracts used by the engine."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import ContentItem, Endpoint, EndpointFilter, SyncStateMap


class ContentStore(ABC):
    """Local content items and their per-endpoint sync states."""

    @abstractmethod
    def get_content(self, content_id: int) -> Optional[ContentItem]:
        pass

    @abstractmethod
    def find_content_by_remote_guid(self, endpoint_id: int, guid: str) -> Optional[ContentItem]:
        """Find the item pulled from an endpoint under a remote guid."""
        pass

    @abstractmethod
    def create_content(self, item: ContentItem) -> int:
        """Insert an item; returns its ID."""
        pass

    @abstractmethod
    def update_content(self, content_id: int, item: ContentItem) -> None:
        """Replace an item's fields in place."""
        pass

    @abstractmethod
    def get_sync_states(self, content_id: int) -> SyncStateMap:
        pass

    @abstractmethod
    def save_sync_states(self, content_id: int, states: SyncStateMap) -> None:
        pass


class EndpointStore(ABC):
    """
    Endpoint configuration and counters.

    Counter operations are atomic read-modify-writes; concurrent callers
    must never lose an increment.
    """

    @abstractmethod
    def get_endpoint(self, endpoint_id: int) -> Optional[Endpoint]:
        pass

    @abstractmethod
    def enumerate_endpoints(self, endpoint_filter: Optional[EndpointFilter] = None) -> List[Endpoint]:
        pass

    @abstractmethod
    def save_endpoint(self, endpoint: Endpoint) -> int:
        """Insert or update an endpoint by name; returns its ID."""
        pass

    @abstractmethod
    def remove_endpoint(self, endpoint_id: int) -> bool:
        pass

    @abstractmethod
    def set_enabled(self, endpoint_id: int, enabled: bool) -> None:
        pass

    @abstractmethod
    def record_pull_failure(self, endpoint_id: int) -> int:
        """Increment the consecutive failure counter; returns the new value."""
        pass

    @abstractmethod
    def record_pull_success(self, endpoint_id: int) -> None:
        """Reset the failure and auto-retry counters."""
        pass

    @abstractmethod
    def claim_auto_retry(self, endpoint_id: int, limit: int) -> Optional[int]:
        """
        Increment the auto-retry counter if below limit.

        Returns the new value, or None once the limit is met; the counter then
        starts over so a later run of failures gets retries again.
        """
        pass

    @abstractmethod
    def disable_endpoint(self, endpoint_id: int) -> bool:
        """Disable an enabled endpoint and reset its counters; True only for the caller that disabled it."""
        pass

    @abstractmethod
    def mark_pulled(self, endpoint_id: int, when: datetime) -> None:
        pass

    def enumerate_group_members(self, group: str) -> List[Endpoint]:
        """Endpoints belonging to a group."""
        return self.enumerate_endpoints(EndpointFilter(group=group))


class LeaseStore(ABC):
    """Named, expiring leases used as locks and debounce markers."""

    @abstractmethod
    def acquire(self, name: str, ttl_seconds: int) -> Optional[str]:
        """
        Take the lease if it is free or expired.

        Returns:
            Owner token for release(), or None if the lease is held
        """
        pass

    @abstractmethod
    def release(self, name: str, token: str) -> bool:
        """Drop the lease only if it is still owned by token."""
        pass

    @abstractmethod
    def is_held(self, name: str) -> bool:
        pass


class ScheduledJob(BaseModel):
    """Deferred or recurring job."""

    id: Optional[int] = Field(None, description="Job ID")
    name: str = Field(..., description="Job name")
    args: Dict[str, Any] = Field(default_factory=dict, description="Job arguments")
    run_at: datetime = Field(..., description="Next run time")
    interval_seconds: Optional[int] = Field(None, description="Recurrence interval, None for one-shot jobs")

    @property
    def recurring(self) -> bool:
        return self.interval_seconds is not None


class JobScheduler(ABC):
    """Persistent job schedule."""

    @abstractmethod
    def schedule_once(self, name: str, run_at: datetime, args: Optional[Dict[str, Any]] = None) -> ScheduledJob:
        pass

    @abstractmethod
    def schedule_recurring(
        self,
        name: str,
        interval_seconds: int,
        args: Optional[Dict[str, Any]] = None,
        first_run: Optional[datetime] = None,
    ) -> ScheduledJob:
        pass

    @abstractmethod
    def clear(self, name: str, args: Optional[Dict[str, Any]] = None) -> int:
        """Remove jobs by name (and args, if given); returns how many were removed."""
        pass

    @abstractmethod
    def jobs(self, name: Optional[str] = None) -> List[ScheduledJob]:
        pass

    @abstractmethod
    def claim_due(self, now: datetime) -> List[ScheduledJob]:
        """
        Atomically take every job due at now.

        One-shot jobs are removed; recurring jobs move to their next run.
        """
        pass
