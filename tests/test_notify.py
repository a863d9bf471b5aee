"""Tests for operator notifications."""

import json
import logging

import httpx

from syndication.notify import CONTENT_CREATED, ENDPOINT_DISABLED, PUSH_FAILURE, Notifier


class TestNotifier:
    """Tests for Notifier."""

    def test_sinks_receive_events(self):
        events = []
        notifier = Notifier(sinks=[events.append])

        notifier.endpoint_disabled(3, "feed", 5)

        assert events[0].kind == ENDPOINT_DISABLED
        assert events[0].endpoint_id == 3
        assert events[0].level == logging.ERROR
        assert "'feed'" in events[0].message

    def test_webhook_posts_selected_events(self):
        requests = []

        def handler(request):
            requests.append(json.loads(request.content))
            return httpx.Response(200)

        notifier = Notifier(
            webhook_url="https://hooks.example.com/x",
            http_transport=httpx.MockTransport(handler),
        )

        notifier.push_failure(1, 2, "new-error", "refused")
        notifier.content_event(CONTENT_CREATED, 1, 2)

        assert len(requests) == 1
        assert "push failure" in requests[0]["text"]
        assert "refused" in requests[0]["text"]

    def test_webhook_failure_is_logged_not_raised(self, caplog):
        notifier = Notifier(
            webhook_url="https://hooks.example.com/x",
            webhook_events=[PUSH_FAILURE],
            http_transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )

        event = notifier.push_failure(1, 2, "edit-error", "locked")

        assert event.kind == PUSH_FAILURE
        assert "Webhook notification failed" in caplog.text
