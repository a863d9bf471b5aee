"""In-process implementations of the storage contracts."""

import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import pendulum

from ..errors import StoreError
from ..models import ContentItem, Endpoint, EndpointFilter, SyncStateMap
from .base import ContentStore, EndpointStore, JobScheduler, LeaseStore, ScheduledJob

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return pendulum.now("UTC")


class MemoryStore(ContentStore, EndpointStore, LeaseStore):
    """Thread-safe store keeping everything in dictionaries."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock or utc_now
        self._lock = threading.Lock()
        self._content: Dict[int, ContentItem] = {}
        self._sync_states: Dict[int, SyncStateMap] = {}
        self._endpoints: Dict[int, Endpoint] = {}
        self._leases: Dict[str, Tuple[datetime, str]] = {}
        self._next_content_id = 1
        self._next_endpoint_id = 1

    # Content

    def get_content(self, content_id: int) -> Optional[ContentItem]:
        with self._lock:
            item = self._content.get(content_id)
            return item.model_copy(deep=True) if item else None

    def find_content_by_remote_guid(self, endpoint_id: int, guid: str) -> Optional[ContentItem]:
        with self._lock:
            for item in self._content.values():
                if item.source_endpoint_id == endpoint_id and item.guid == guid:
                    return item.model_copy(deep=True)
        return None

    def create_content(self, item: ContentItem) -> int:
        with self._lock:
            if item.source_endpoint_id is not None and item.guid:
                for existing in self._content.values():
                    if existing.source_endpoint_id == item.source_endpoint_id and existing.guid == item.guid:
                        raise StoreError(
                            f"Content with guid '{item.guid}' already exists for endpoint {item.source_endpoint_id}"
                        )
            content_id = self._next_content_id
            self._next_content_id += 1
            self._content[content_id] = item.stored_copy(content_id, self.clock())
            return content_id

    def update_content(self, content_id: int, item: ContentItem) -> None:
        with self._lock:
            existing = self._content.get(content_id)
            if existing is None:
                raise StoreError(f"Content {content_id} does not exist")
            self._content[content_id] = item.stored_copy(content_id, self.clock(), existing.created_at)

    def delete_content(self, content_id: int) -> None:
        with self._lock:
            self._content.pop(content_id, None)
            self._sync_states.pop(content_id, None)

    def get_sync_states(self, content_id: int) -> SyncStateMap:
        with self._lock:
            states = self._sync_states.get(content_id)
            return states.model_copy(deep=True) if states else SyncStateMap()

    def save_sync_states(self, content_id: int, states: SyncStateMap) -> None:
        with self._lock:
            self._sync_states[content_id] = states.model_copy(deep=True)

    # Endpoints

    def get_endpoint(self, endpoint_id: int) -> Optional[Endpoint]:
        with self._lock:
            endpoint = self._endpoints.get(endpoint_id)
            return endpoint.model_copy(deep=True) if endpoint else None

    def enumerate_endpoints(self, endpoint_filter: Optional[EndpointFilter] = None) -> List[Endpoint]:
        with self._lock:
            endpoints = [e.model_copy(deep=True) for e in self._endpoints.values()]
        if endpoint_filter is not None:
            endpoints = [e for e in endpoints if endpoint_filter.matches(e)]
        return sorted(endpoints, key=lambda e: e.name)

    def save_endpoint(self, endpoint: Endpoint) -> int:
        with self._lock:
            for existing in self._endpoints.values():
                if existing.name == endpoint.name:
                    self._endpoints[existing.id] = endpoint.stored_copy(
                        existing.id, self.clock(), existing.created_at
                    )
                    return existing.id
            endpoint_id = self._next_endpoint_id
            self._next_endpoint_id += 1
            self._endpoints[endpoint_id] = endpoint.stored_copy(endpoint_id, self.clock())
            return endpoint_id

    def remove_endpoint(self, endpoint_id: int) -> bool:
        with self._lock:
            return self._endpoints.pop(endpoint_id, None) is not None

    def set_enabled(self, endpoint_id: int, enabled: bool) -> None:
        with self._lock:
            self._require_endpoint(endpoint_id).enabled = enabled

    def record_pull_failure(self, endpoint_id: int) -> int:
        with self._lock:
            endpoint = self._require_endpoint(endpoint_id)
            endpoint.consecutive_failures += 1
            return endpoint.consecutive_failures

    def record_pull_success(self, endpoint_id: int) -> None:
        with self._lock:
            endpoint = self._require_endpoint(endpoint_id)
            endpoint.consecutive_failures = 0
            endpoint.auto_retry_count = 0

    def claim_auto_retry(self, endpoint_id: int, limit: int) -> Optional[int]:
        with self._lock:
            endpoint = self._require_endpoint(endpoint_id)
            if endpoint.auto_retry_count >= limit:
                endpoint.auto_retry_count = 0
                return None
            endpoint.auto_retry_count += 1
            return endpoint.auto_retry_count

    def disable_endpoint(self, endpoint_id: int) -> bool:
        with self._lock:
            endpoint = self._require_endpoint(endpoint_id)
            if not endpoint.enabled:
                return False
            endpoint.enabled = False
            endpoint.consecutive_failures = 0
            endpoint.auto_retry_count = 0
            return True

    def mark_pulled(self, endpoint_id: int, when: datetime) -> None:
        with self._lock:
            self._require_endpoint(endpoint_id).last_pull_at = when

    def _require_endpoint(self, endpoint_id: int) -> Endpoint:
        endpoint = self._endpoints.get(endpoint_id)
        if endpoint is None:
            raise StoreError(f"Endpoint {endpoint_id} does not exist")
        return endpoint

    # Leases

    def acquire(self, name: str, ttl_seconds: int) -> Optional[str]:
        with self._lock:
            now = self.clock()
            held = self._leases.get(name)
            if held is not None and held[0] > now:
                return None
            token = uuid.uuid4().hex
            self._leases[name] = (now + timedelta(seconds=ttl_seconds), token)
            return token

    def release(self, name: str, token: str) -> bool:
        with self._lock:
            held = self._leases.get(name)
            if held is None or held[1] != token:
                return False
            del self._leases[name]
            return True

    def is_held(self, name: str) -> bool:
        with self._lock:
            held = self._leases.get(name)
            return held is not None and held[0] > self.clock()


class MemoryScheduler(JobScheduler):
    """Job schedule kept in a list."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock or utc_now
        self._lock = threading.Lock()
        self._jobs: List[ScheduledJob] = []
        self._next_id = 1

    def _add(self, job: ScheduledJob) -> ScheduledJob:
        with self._lock:
            job.id = self._next_id
            self._next_id += 1
            self._jobs.append(job)
            return job.model_copy(deep=True)

    def schedule_once(self, name: str, run_at: datetime, args: Optional[Dict[str, Any]] = None) -> ScheduledJob:
        return self._add(ScheduledJob(name=name, run_at=run_at, args=dict(args or {})))

    def schedule_recurring(
        self,
        name: str,
        interval_seconds: int,
        args: Optional[Dict[str, Any]] = None,
        first_run: Optional[datetime] = None,
    ) -> ScheduledJob:
        return self._add(
            ScheduledJob(
                name=name,
                run_at=first_run or self.clock(),
                args=dict(args or {}),
                interval_seconds=interval_seconds,
            )
        )

    def clear(self, name: str, args: Optional[Dict[str, Any]] = None) -> int:
        with self._lock:
            kept = [
                job for job in self._jobs
                if job.name != name or (args is not None and job.args != args)
            ]
            removed = len(self._jobs) - len(kept)
            self._jobs = kept
            return removed

    def jobs(self, name: Optional[str] = None) -> List[ScheduledJob]:
        with self._lock:
            jobs = [job.model_copy(deep=True) for job in self._jobs if name is None or job.name == name]
        return sorted(jobs, key=lambda job: job.run_at)

    def claim_due(self, now: datetime) -> List[ScheduledJob]:
        with self._lock:
            due = [job for job in self._jobs if job.run_at <= now]
            claimed = [job.model_copy(deep=True) for job in due]
            for job in due:
                if job.recurring:
                    job.run_at = now + timedelta(seconds=job.interval_seconds)
                else:
                    self._jobs.remove(job)
        return sorted(claimed, key=lambda job: job.run_at)
