"""Tests for pull cycles."""

from syndication.errors import FeedFetchError, FeedParseError
from syndication.models import NormalizedRecord
from syndication.notify import CONTENT_CREATED, CONTENT_UPDATED, FEED_ERROR

from conftest import FakePullTransport


def record(guid: str, title: str = "Remote", **fields) -> NormalizedRecord:
    return NormalizedRecord(guid=guid, title=title, body=f"{title} body", **fields)


class RemovingPullTransport(FakePullTransport):
    """Fake transport whose endpoint is deleted while it is being pulled."""

    def __init__(self, store, endpoint_id, records) -> None:
        super().__init__(records)
        self.store = store
        self.endpoint_id = endpoint_id

    def pull(self, args=None):
        self.store.remove_endpoint(self.endpoint_id)
        return super().pull(args)


class TestPullCycle:
    """Tests for SyncEngine.run_pull_cycle."""

    def test_creates_local_items(self, engine, store, factory, add_endpoint, events):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        factory.pull_transports[endpoint_id] = FakePullTransport([record("a"), record("b")])

        report = engine.run_pull_cycle()

        assert report.created == 2
        item = store.find_content_by_remote_guid(endpoint_id, "a")
        assert item.source_endpoint_id == endpoint_id
        assert item.title == "Remote"
        assert [e.kind for e in events] == [CONTENT_CREATED, CONTENT_CREATED]

    def test_repeated_pull_is_idempotent(self, engine, store, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        factory.pull_transports[endpoint_id] = FakePullTransport([record("a")])

        engine.run_pull_cycle([endpoint_id])
        report = engine.run_pull_cycle([endpoint_id])

        assert report.created == 0
        assert report.results[0].unchanged == 1
        assert store.get_content(2) is None

    def test_update_pulled_content_keeps_local_status(
        self, engine, store, factory, add_endpoint, config, events
    ):
        config.pull.update_pulled_content = True
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport([record("a", status="draft")])
        engine.run_pull_cycle([endpoint_id])

        item = store.find_content_by_remote_guid(endpoint_id, "a")
        item.status = "publish"
        store.update_content(item.id, item)
        transport.records = [record("a", title="Edited", status="draft")]

        report = engine.run_pull_cycle([endpoint_id])

        assert report.updated == 1
        updated = store.get_content(item.id)
        assert updated.title == "Edited"
        assert updated.status == "publish"
        assert events[-1].kind == CONTENT_UPDATED

    def test_record_without_guid_rejected(self, engine, store, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        factory.pull_transports[endpoint_id] = FakePullTransport([record(""), record("b")])

        report = engine.run_pull_cycle([endpoint_id])

        assert report.results[0].rejected == 1
        assert report.results[0].created == 1

    def test_same_guid_on_two_endpoints_creates_two_items(self, engine, store, factory, add_endpoint):
        first = add_endpoint("one", kind="rss_pull")
        second = add_endpoint("two", kind="rss_pull")
        factory.pull_transports[first] = FakePullTransport([record("shared")])
        factory.pull_transports[second] = FakePullTransport([record("shared")])

        report = engine.run_pull_cycle()

        assert report.created == 2
        assert store.find_content_by_remote_guid(first, "shared").id != store.find_content_by_remote_guid(
            second, "shared"
        ).id

    def test_disabled_endpoint_not_pulled(self, engine, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull", enabled=False)
        transport = factory.pull_transports[endpoint_id] = FakePullTransport([record("a")])

        assert engine.run_pull_cycle([endpoint_id]).results == []
        assert engine.run_pull_cycle().results == []
        assert transport.pulls == 0

    def test_unselected_group_not_pulled_on_schedule(self, engine, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull", groups=["sports"])
        transport = factory.pull_transports[endpoint_id] = FakePullTransport([record("a")])

        engine.run_pull_cycle()

        assert transport.pulls == 0

    def test_interval_respected_on_schedule(self, engine, factory, add_endpoint, clock):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport([record("a")])

        engine.run_pull_cycle()
        engine.run_pull_cycle()
        assert transport.pulls == 1

        clock.advance(3600)
        engine.run_pull_cycle()
        assert transport.pulls == 2

    def test_lock_held_skips_endpoint(self, engine, store, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport([record("a")])
        store.acquire(f"pull-lock:{endpoint_id}", 300)

        report = engine.run_pull_cycle([endpoint_id])

        assert report.results[0].skipped
        assert transport.pulls == 0

    def test_missing_transport_skipped(self, engine, store, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")

        report = engine.run_pull_cycle([endpoint_id])

        assert report.results[0].skipped
        assert store.get_endpoint(endpoint_id).consecutive_failures == 0

    def test_failure_counted_and_lock_released(self, engine, store, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport()
        transport.error = FeedFetchError("Failed to fetch remote URL; HTTP code: 500")

        report = engine.run_pull_cycle([endpoint_id])

        assert report.failed == 1
        assert report.results[0].failures == 1
        assert store.get_endpoint(endpoint_id).consecutive_failures == 1
        assert store.get_endpoint(endpoint_id).last_pull_at is not None
        assert not store.is_held(f"pull-lock:{endpoint_id}")

    def test_endpoint_removed_mid_pull(self, engine, store, factory, add_endpoint):
        removed = add_endpoint("a-feed", kind="rss_pull")
        kept = add_endpoint("b-feed", kind="rss_pull")
        factory.pull_transports[removed] = RemovingPullTransport(store, removed, [record("a")])
        factory.pull_transports[kept] = FakePullTransport([record("b")])

        report = engine.run_pull_cycle([removed, kept])

        assert len(report.results) == 2
        assert not report.results[0].success
        assert "does not exist" in report.results[0].error
        assert report.results[1].success
        assert not store.is_held(f"pull-lock:{removed}")

    def test_parse_error_notifies_feed_error(self, engine, factory, add_endpoint, events):
        endpoint_id = add_endpoint("feed", kind="xml_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport()
        transport.error = FeedParseError("Could not parse feed")

        engine.run_pull_cycle([endpoint_id])

        assert [e.kind for e in events] == [FEED_ERROR]

    def test_fetch_error_does_not_notify(self, engine, factory, add_endpoint, events):
        endpoint_id = add_endpoint("feed", kind="xml_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport()
        transport.error = FeedFetchError("timeout")

        engine.run_pull_cycle([endpoint_id])

        assert events == []

    def test_success_resets_failures(self, engine, store, factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull")
        transport = factory.pull_transports[endpoint_id] = FakePullTransport([record("a")])
        transport.error = FeedFetchError("timeout")
        engine.run_pull_cycle([endpoint_id])

        transport.error = None
        engine.run_pull_cycle([endpoint_id])

        assert store.get_endpoint(endpoint_id).consecutive_failures == 0
