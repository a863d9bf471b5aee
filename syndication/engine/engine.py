"""Sync engine: pull cycles, push cycles and remote deletes."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Tuple

import pendulum

from ..config import ConfigModel
from ..errors import FeedMappingError, FeedParseError, StoreError, TransportError
from ..models import ContentItem, Endpoint, NormalizedRecord, SyncState, SyncStateMap, SyncStatus
from ..notify import CONTENT_CREATED, CONTENT_DELETED, CONTENT_UPDATED, Notifier
from ..store.base import ContentStore, EndpointStore, JobScheduler, LeaseStore
from ..transports import PushCapable, TransportFactory
from .jobs import DELETE_JOB, PUSH_JOB, JobRun, JobRunner
from .monitor import FailureMonitor
from .reports import EndpointPullResult, EndpointPushResult, PullReport, PushReport
from .schedule import ScheduleRefresher
from .selection import resolve_push_targets, select_pull_endpoints
from .states import after_delete, after_push, after_update, has_remote_copy, resolve_state

logger = logging.getLogger(__name__)


class SyncEngine:
    """Orchestrate transports, stores, the failure monitor and the schedule."""

    def __init__(
        self,
        content: ContentStore,
        endpoints: EndpointStore,
        leases: LeaseStore,
        scheduler: JobScheduler,
        factory: TransportFactory,
        config: Optional[ConfigModel] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize sync engine.

        Args:
            content: Local content store
            endpoints: Endpoint store
            leases: Lease store for locks and debounce markers
            scheduler: Job schedule
            factory: Builds transports for endpoints
            config: Engine configuration
            notifier: Operator notifications
            clock: Returns the current time (UTC)
        """
        self.content = content
        self.endpoints = endpoints
        self.leases = leases
        self.scheduler = scheduler
        self.factory = factory
        self.config = config or ConfigModel()
        self.notifier = notifier or Notifier()
        self.clock = clock or (lambda: pendulum.now("UTC"))
        self.monitor = FailureMonitor.from_config(
            self.config.pull, endpoints, scheduler, self.notifier, clock=self.clock
        )
        self.refresher = ScheduleRefresher(endpoints, leases, scheduler, self.config, clock=self.clock)

    # Pull

    def run_pull_cycle(self, endpoint_ids: Optional[Iterable[int]] = None) -> PullReport:
        """
        Pull content from endpoints into the local store.

        Without endpoint_ids, pulls the enabled members of the selected
        groups whose last pull is older than the pull interval.
        """
        report = PullReport(started_at=self.clock())

        for endpoint in self._pull_candidates(endpoint_ids):
            result = self._pull_endpoint(endpoint)
            report.results.append(result)

        report.finished_at = self.clock()
        logger.info(
            "Pull cycle finished: %d endpoint(s), %d created, %d updated, %d failed",
            len(report.results),
            report.created,
            report.updated,
            report.failed,
        )
        return report

    def _pull_candidates(self, endpoint_ids: Optional[Iterable[int]]) -> List[Endpoint]:
        if endpoint_ids is None:
            now = self.clock()
            interval = timedelta(seconds=self.config.pull.interval_seconds)
            return [
                endpoint
                for endpoint in select_pull_endpoints(self.endpoints, self.config.pull.selected_groups)
                if endpoint.last_pull_at is None or endpoint.last_pull_at + interval <= now
            ]

        candidates = []
        for endpoint_id in endpoint_ids:
            endpoint = self.endpoints.get_endpoint(endpoint_id)
            if endpoint is None:
                logger.warning("Endpoint %s does not exist; not pulling", endpoint_id)
            elif not endpoint.enabled:
                logger.info("Endpoint '%s' is disabled; not pulling", endpoint.name)
            else:
                candidates.append(endpoint)
        return candidates

    def _pull_endpoint(self, endpoint: Endpoint) -> EndpointPullResult:
        result = EndpointPullResult(endpoint_id=endpoint.id, endpoint_name=endpoint.name)
        lock = f"pull-lock:{endpoint.id}"

        token = self.leases.acquire(lock, self.config.pull.lock_ttl_seconds)
        if token is None:
            logger.info("Pull of endpoint '%s' already running; skipped", endpoint.name)
            result.skipped = True
            result.error = "pull already running"
            return result

        try:
            transport = self.factory.create_pull_transport(endpoint.id)
            if transport is None:
                result.skipped = True
                result.error = "no usable pull transport configured"
                return result

            try:
                records = transport.pull()
            except TransportError as e:
                outcome = self.monitor.record_failure(endpoint, str(e))
                if isinstance(e, (FeedParseError, FeedMappingError)):
                    self.notifier.feed_error(endpoint.id, endpoint.name, str(e))
                result.error = str(e)
                result.failures = outcome.failures
                result.disabled = outcome.disabled
                return result

            self.monitor.record_success(endpoint)
            self._store_records(endpoint, records, result)
            result.success = True
            return result
        except StoreError as e:
            logger.error("Endpoint '%s' changed during its pull: %s", endpoint.name, e)
            result.error = str(e)
            return result
        finally:
            try:
                self.endpoints.mark_pulled(endpoint.id, self.clock())
            except StoreError as e:
                logger.error("Could not record pull time for endpoint '%s': %s", endpoint.name, e)
            self._release(lock, token)

    def _release(self, lock: str, token: str) -> None:
        if not self.leases.release(lock, token):
            logger.warning("Lease '%s' expired before release; it was not dropped", lock)

    def _store_records(
        self, endpoint: Endpoint, records: List[NormalizedRecord], result: EndpointPullResult
    ) -> None:
        """Create or update local items for pulled records."""
        for record in records:
            if not record.guid:
                logger.warning("Record '%s' from endpoint '%s' has no guid; skipped", record.title, endpoint.name)
                result.rejected += 1
                continue

            try:
                existing = self.content.find_content_by_remote_guid(endpoint.id, record.guid)
                if existing is not None and not self.config.pull.update_pulled_content:
                    result.unchanged += 1
                    continue

                item = ContentItem.from_record(record, endpoint.id)
                if existing is not None:
                    # Pulled updates keep the local publication status
                    item.status = existing.status
                    self.content.update_content(existing.id, item)
                    result.updated += 1
                    self.notifier.content_event(CONTENT_UPDATED, existing.id, endpoint.id)
                else:
                    content_id = self.content.create_content(item)
                    result.created += 1
                    self.notifier.content_event(CONTENT_CREATED, content_id, endpoint.id)
            except StoreError as e:
                logger.error("Could not store record '%s' from endpoint '%s': %s", record.guid, endpoint.name, e)
                result.rejected += 1

    # Push

    def push_content(
        self,
        content_id: int,
        selected_endpoint_ids: Iterable[int] = (),
        removed_endpoint_ids: Iterable[int] = (),
    ) -> PushReport:
        """
        Push a content item to the selected endpoints and remove it from deselected ones.

        Endpoints are processed independently; states are saved after each one.
        """
        if self.content.get_content(content_id) is None:
            return PushReport(content_id=content_id, success=False, error=f"Content {content_id} not found")

        lock = f"push-lock:{content_id}"
        token = self.leases.acquire(lock, self.config.push.lock_ttl_seconds)
        if token is None:
            logger.info("Push of content %d already in progress; skipped", content_id)
            return PushReport(content_id=content_id, success=False, error="push already in progress")

        report = PushReport(content_id=content_id)
        try:
            states = self.content.get_sync_states(content_id)

            for endpoint_id in _unique(selected_endpoint_ids):
                result = self._push_to_endpoint(content_id, endpoint_id, states)
                report.results.append(result)
                self.content.save_sync_states(content_id, states)

            for endpoint_id in _unique(removed_endpoint_ids):
                result = self._remove_from_endpoint(content_id, endpoint_id, states)
                report.results.append(result)
                self.content.save_sync_states(content_id, states)
        finally:
            self._release(lock, token)

        logger.info(
            "Push of content %d finished: %d endpoint(s), %d failed",
            content_id,
            len(report.results),
            len(report.failed),
        )
        return report

    def _push_to_endpoint(self, content_id: int, endpoint_id: int, states: SyncStateMap) -> EndpointPushResult:
        prior = states.get(endpoint_id)
        endpoint = self.endpoints.get_endpoint(endpoint_id)
        if endpoint is None or not endpoint.enabled:
            return self._skipped(endpoint_id, prior, "endpoint missing or disabled")

        transport = self.factory.create_push_transport(endpoint_id)
        if transport is None:
            return self._skipped(endpoint_id, prior, "no usable push transport configured")

        remote_exists = None
        if has_remote_copy(prior):
            try:
                remote_exists = transport.is_post_exists(prior.remote_id)
            except TransportError as e:
                state = after_update(endpoint_id, prior.remote_id, str(e))
                return self._record(content_id, states, state, "update")

        if resolve_state(prior, remote_exists) == SyncStatus.NEW:
            return self._create_remote(content_id, endpoint_id, transport, states, prior)
        return self._update_remote(content_id, endpoint_id, transport, states, prior)

    def _create_remote(
        self,
        content_id: int,
        endpoint_id: int,
        transport: PushCapable,
        states: SyncStateMap,
        prior: Optional[SyncState],
    ) -> EndpointPushResult:
        try:
            remote_id = transport.push(content_id)
        except TransportError as e:
            return self._record(content_id, states, after_push(endpoint_id, error=str(e)), "push")

        if remote_id is None:
            return self._skipped(endpoint_id, prior, None)
        return self._record(content_id, states, after_push(endpoint_id, remote_id), "push")

    def _update_remote(
        self,
        content_id: int,
        endpoint_id: int,
        transport: PushCapable,
        states: SyncStateMap,
        prior: SyncState,
    ) -> EndpointPushResult:
        try:
            updated = transport.update(content_id, prior.remote_id)
        except TransportError as e:
            return self._record(content_id, states, after_update(endpoint_id, prior.remote_id, str(e)), "update")

        if updated is None:
            return self._skipped(endpoint_id, prior, None)
        return self._record(content_id, states, after_update(endpoint_id, prior.remote_id), "update")

    def _remove_from_endpoint(self, content_id: int, endpoint_id: int, states: SyncStateMap) -> EndpointPushResult:
        """Delete the remote copy on an endpoint the item is no longer sent to."""
        prior = states.get(endpoint_id)
        if not has_remote_copy(prior):
            # Nothing to delete remotely
            states.apply(endpoint_id, None)
            return EndpointPushResult(endpoint_id=endpoint_id, action="drop")

        transport = self.factory.create_push_transport(endpoint_id)
        if transport is None:
            return self._skipped(endpoint_id, prior, "no usable push transport configured")

        try:
            if not transport.is_post_exists(prior.remote_id):
                states.apply(endpoint_id, None)
                return EndpointPushResult(endpoint_id=endpoint_id, action="drop", remote_id=prior.remote_id)
            if not transport.delete(prior.remote_id):
                raise TransportError(f"Endpoint refused to delete {prior.remote_id}", code="delete-refused")
        except TransportError as e:
            return self._record(content_id, states, after_delete(endpoint_id, prior.remote_id, str(e)), "delete")

        states.apply(endpoint_id, after_delete(endpoint_id, prior.remote_id))
        self.notifier.content_event(CONTENT_DELETED, content_id, endpoint_id)
        return EndpointPushResult(endpoint_id=endpoint_id, action="delete", remote_id=prior.remote_id)

    def _record(self, content_id: int, states: SyncStateMap, state: SyncState, action: str) -> EndpointPushResult:
        """Store a transition result and notify about failures."""
        states.apply(state.endpoint_id, state)
        if state.error is not None:
            self.notifier.push_failure(content_id, state.endpoint_id, state.status.value, state.error)
        return EndpointPushResult(
            endpoint_id=state.endpoint_id,
            action=action,
            status=state.status,
            remote_id=state.remote_id,
            error=state.error,
        )

    @staticmethod
    def _skipped(endpoint_id: int, prior: Optional[SyncState], reason: Optional[str]) -> EndpointPushResult:
        """Result for an endpoint whose state is left unchanged."""
        if reason:
            logger.warning("Endpoint %s skipped: %s", endpoint_id, reason)
        return EndpointPushResult(
            endpoint_id=endpoint_id,
            action="skip",
            status=prior.status if prior else None,
            remote_id=prior.remote_id if prior else None,
            error=reason,
        )

    def delete_content_everywhere(self, content_id: int) -> PushReport:
        """
        Delete every remote copy of a content item.

        Does nothing unless push.delete_pushed_content is enabled. Disabled
        endpoints are skipped and keep their state.
        """
        if not self.config.push.delete_pushed_content:
            logger.debug("Deleting pushed content is disabled; content %d left remotely", content_id)
            return PushReport(content_id=content_id)

        lock = f"push-lock:{content_id}"
        token = self.leases.acquire(lock, self.config.push.lock_ttl_seconds)
        if token is None:
            return PushReport(content_id=content_id, success=False, error="push already in progress")

        report = PushReport(content_id=content_id)
        try:
            states = self.content.get_sync_states(content_id)
            for state in states.all():
                endpoint = self.endpoints.get_endpoint(state.endpoint_id)
                if endpoint is None or not endpoint.enabled:
                    report.results.append(self._skipped(state.endpoint_id, state, None))
                    continue
                report.results.append(self._remove_from_endpoint(content_id, state.endpoint_id, states))
                self.content.save_sync_states(content_id, states)
        finally:
            self._release(lock, token)
        return report

    def resolve_push_targets(
        self, selected_groups: Iterable[str], previous_groups: Iterable[str] = ()
    ) -> Tuple[List[int], List[int]]:
        """Selected and removed endpoint IDs for a change of group selection."""
        return resolve_push_targets(self.endpoints, selected_groups, previous_groups)

    # Deferred work

    def schedule_push_content(
        self,
        content_id: int,
        selected_endpoint_ids: Iterable[int] = (),
        removed_endpoint_ids: Iterable[int] = (),
        delay_seconds: int = 0,
    ) -> None:
        """Defer a push cycle to the job runner."""
        self.scheduler.schedule_once(
            PUSH_JOB,
            self.clock() + timedelta(seconds=delay_seconds),
            {
                "content_id": content_id,
                "selected_endpoint_ids": list(selected_endpoint_ids),
                "removed_endpoint_ids": list(removed_endpoint_ids),
            },
        )

    def schedule_delete_content(self, content_id: int, delay_seconds: int = 0) -> None:
        """Defer a remote delete to the job runner."""
        self.scheduler.schedule_once(
            DELETE_JOB,
            self.clock() + timedelta(seconds=delay_seconds),
            {"content_id": content_id},
        )

    def refresh_schedules(self) -> List[int]:
        return self.refresher.refresh()

    def request_schedule_refresh(self) -> bool:
        return self.refresher.request_refresh()

    def run_due_jobs(self) -> List[JobRun]:
        """Run every job that is due now."""
        return JobRunner(self).run_due()


def _unique(endpoint_ids: Iterable[int]) -> List[int]:
    seen = []
    for endpoint_id in endpoint_ids:
        if endpoint_id not in seen:
            seen.append(endpoint_id)
    return seen
