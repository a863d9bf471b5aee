"""Tests for the failure monitor."""

import pytest

from syndication.engine import PULL_JOB, FailureMonitor
from syndication.notify import ENDPOINT_DISABLED


@pytest.fixture
def monitor(store, scheduler, notifier, clock) -> FailureMonitor:
    return FailureMonitor(
        store,
        scheduler,
        notifier,
        max_attempts=3,
        auto_retry_limit=2,
        auto_retry_delay_seconds=60,
        clock=clock,
    )


class TestFailureMonitor:
    """Tests for FailureMonitor."""

    def test_disables_at_threshold_and_notifies_once(self, monitor, store, add_endpoint, events):
        endpoint_id = add_endpoint("feed", kind="rss_pull")

        outcomes = [monitor.record_failure(store.get_endpoint(endpoint_id), "down") for _ in range(3)]

        assert [o.disabled for o in outcomes] == [False, False, True]
        endpoint = store.get_endpoint(endpoint_id)
        assert not endpoint.enabled
        assert endpoint.consecutive_failures == 0
        assert [e.kind for e in events] == [ENDPOINT_DISABLED]

        # A late failure from an in-flight pull does not notify again
        monitor.record_failure(endpoint, "down")
        monitor.record_failure(endpoint, "down")
        monitor.record_failure(endpoint, "down")
        assert [e.kind for e in events] == [ENDPOINT_DISABLED]

    def test_schedules_auto_retries_below_threshold(self, monitor, store, scheduler, add_endpoint, clock):
        endpoint_id = add_endpoint("feed", kind="rss_pull")

        outcome = monitor.record_failure(store.get_endpoint(endpoint_id), "down")

        assert outcome.retry_number == 1
        assert outcome.retry_at == clock.now.add(seconds=60)
        jobs = scheduler.jobs(PULL_JOB)
        assert len(jobs) == 1
        assert jobs[0].args == {"endpoint_ids": [endpoint_id]}
        assert not jobs[0].recurring

    def test_auto_retries_restart_after_cap(self, store, scheduler, notifier, clock, add_endpoint):
        monitor = FailureMonitor(store, scheduler, notifier, max_attempts=10, auto_retry_limit=2, clock=clock)
        endpoint_id = add_endpoint("feed", kind="rss_pull")

        outcomes = [monitor.record_failure(store.get_endpoint(endpoint_id), "down") for _ in range(4)]

        assert [o.retry_number for o in outcomes] == [1, 2, None, 1]
        assert len(scheduler.jobs(PULL_JOB)) == 3
        assert store.get_endpoint(endpoint_id).auto_retry_count == 1

    def test_no_threshold_never_disables_or_retries(self, store, scheduler, notifier, clock, add_endpoint):
        monitor = FailureMonitor(store, scheduler, notifier, max_attempts=0, clock=clock)
        endpoint_id = add_endpoint("feed", kind="rss_pull")

        for _ in range(10):
            monitor.record_failure(store.get_endpoint(endpoint_id), "down")

        endpoint = store.get_endpoint(endpoint_id)
        assert endpoint.enabled
        assert endpoint.consecutive_failures == 10
        assert scheduler.jobs() == []

    def test_success_resets_counters(self, monitor, store, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        monitor.record_failure(store.get_endpoint(endpoint_id), "down")
        monitor.record_failure(store.get_endpoint(endpoint_id), "down")

        monitor.record_success(store.get_endpoint(endpoint_id))

        endpoint = store.get_endpoint(endpoint_id)
        assert endpoint.consecutive_failures == 0
        assert endpoint.auto_retry_count == 0
