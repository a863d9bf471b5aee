"""Tests for the in-memory store and scheduler."""

import pytest

from syndication.errors import StoreError
from syndication.models import ContentItem, EndpointFilter, TransportKind


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_duplicate_guid_per_endpoint_rejected(self, store, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        store.create_content(ContentItem(source_endpoint_id=endpoint_id, guid="g"))

        with pytest.raises(StoreError):
            store.create_content(ContentItem(source_endpoint_id=endpoint_id, guid="g"))

    def test_stored_copy_assigns_key_and_timestamps(self, store, clock):
        content_id = store.create_content(ContentItem(title="a"))
        created = store.get_content(content_id)
        assert created.id == content_id
        assert created.created_at == clock.now

        clock.advance(10)
        store.update_content(content_id, ContentItem(title="b"))

        updated = store.get_content(content_id)
        assert updated.title == "b"
        assert updated.created_at == created.created_at
        assert updated.updated_at == clock.now

    def test_returned_items_are_copies(self, store, add_content):
        content_id = add_content("original")
        store.get_content(content_id).title = "changed"
        assert store.get_content(content_id).title == "original"

    def test_save_endpoint_by_name(self, store, add_endpoint):
        first = add_endpoint("feed", kind="rss_pull")
        second = add_endpoint("feed", kind="xml_pull")

        assert first == second
        assert store.get_endpoint(first).kind == TransportKind.XML_PULL

    def test_enumerate_with_filter(self, store, add_endpoint):
        add_endpoint("a", kind="rss_pull", groups=["news"])
        add_endpoint("b", kind="rest_push", groups=["news"], enabled=False)
        add_endpoint("c", kind="rss_pull", groups=["sports"])

        assert [e.name for e in store.enumerate_endpoints(EndpointFilter(enabled=True, group="news"))] == ["a"]
        assert [e.name for e in store.enumerate_endpoints(EndpointFilter(kinds=[TransportKind.RSS_PULL]))] == [
            "a",
            "c",
        ]
        assert [e.name for e in store.enumerate_group_members("news")] == ["a", "b"]

    def test_counter_operations(self, store, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")

        assert store.record_pull_failure(endpoint_id) == 1
        assert store.record_pull_failure(endpoint_id) == 2
        assert store.claim_auto_retry(endpoint_id, 1) == 1
        assert store.claim_auto_retry(endpoint_id, 1) is None
        assert store.get_endpoint(endpoint_id).auto_retry_count == 0
        assert store.claim_auto_retry(endpoint_id, 1) == 1
        assert store.disable_endpoint(endpoint_id)
        assert not store.disable_endpoint(endpoint_id)
        assert store.get_endpoint(endpoint_id).consecutive_failures == 0

    def test_counters_on_missing_endpoint(self, store):
        with pytest.raises(StoreError):
            store.record_pull_failure(99)

    def test_leases_expire(self, store, clock):
        assert store.acquire("lock", 30)
        assert not store.acquire("lock", 30)
        assert store.is_held("lock")

        clock.advance(30)

        assert not store.is_held("lock")
        token = store.acquire("lock", 30)
        assert token
        assert store.release("lock", token)
        assert not store.is_held("lock")

    def test_release_after_expiry_keeps_new_owner(self, store, clock):
        first = store.acquire("push-lock:1", 300)
        clock.advance(301)
        second = store.acquire("push-lock:1", 300)
        assert second and second != first

        assert not store.release("push-lock:1", first)
        assert store.is_held("push-lock:1")
        assert store.acquire("push-lock:1", 300) is None

        assert store.release("push-lock:1", second)
        assert not store.is_held("push-lock:1")


class TestMemoryScheduler:
    """Tests for MemoryScheduler."""

    def test_claim_due(self, scheduler, clock):
        scheduler.schedule_once("once", clock.now)
        scheduler.schedule_once("later", clock.now.add(seconds=5))
        scheduler.schedule_recurring("every", 60)

        claimed = scheduler.claim_due(clock.now)

        assert sorted(job.name for job in claimed) == ["every", "once"]
        assert [job.name for job in scheduler.jobs()] == ["later", "every"]
        assert scheduler.jobs("every")[0].run_at == clock.now.add(seconds=60)
        assert scheduler.claim_due(clock.now) == []

    def test_clear_by_args(self, scheduler, clock):
        scheduler.schedule_once("pull_content", clock.now, {"endpoint_ids": [1]})
        scheduler.schedule_once("pull_content", clock.now, {"endpoint_ids": [2]})

        assert scheduler.clear("pull_content", {"endpoint_ids": [1]}) == 1
        assert [job.args for job in scheduler.jobs()] == [{"endpoint_ids": [2]}]
        assert scheduler.clear("pull_content") == 1
