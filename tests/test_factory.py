"""Tests for the transport factory."""

import pytest

from syndication.crypto import FernetEncryptor
from syndication.models import TransportKind
from syndication.transports import (
    RestPushTransport,
    RssPullTransport,
    TransportFactory,
    XmlPullTransport,
    XmlRpcTransport,
)

MAPPING = {
    "post_root": "/rss/item",
    "nodes": {"title": [{"field": "title", "is_item": True}]},
}


@pytest.fixture
def encryptor() -> FernetEncryptor:
    return FernetEncryptor(FernetEncryptor.generate_key())


@pytest.fixture
def transport_factory(store, encryptor) -> TransportFactory:
    return TransportFactory(store, encryptor)


class TestTransportFactory:
    """Tests for TransportFactory."""

    def test_unknown_endpoint(self, transport_factory):
        assert transport_factory.create(42) is None

    def test_unknown_kind(self, transport_factory, add_endpoint):
        endpoint_id = add_endpoint("pigeon", kind="carrier_pigeon", url="http://example.com")
        assert transport_factory.create(endpoint_id) is None

    def test_empty_kind(self, transport_factory, add_endpoint):
        assert transport_factory.create(add_endpoint("blank", kind="")) is None

    def test_rss_pull(self, transport_factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull", feed_url="http://example.com/feed")

        transport = transport_factory.create_pull_transport(endpoint_id)

        assert isinstance(transport, RssPullTransport)
        assert transport.endpoint_id == endpoint_id
        assert transport.feed_url == "http://example.com/feed"

    def test_pull_only_kind_is_not_a_push_transport(self, transport_factory, add_endpoint):
        endpoint_id = add_endpoint("feed", kind="rss_pull", feed_url="http://example.com/feed")
        assert transport_factory.create_push_transport(endpoint_id) is None

    def test_xml_pull_with_mapping(self, transport_factory, add_endpoint):
        endpoint_id = add_endpoint("xml", kind="xml_pull", url="http://example.com/feed.xml", mapping=MAPPING)
        assert isinstance(transport_factory.create_pull_transport(endpoint_id), XmlPullTransport)

    def test_xml_pull_invalid_mapping(self, transport_factory, add_endpoint):
        endpoint_id = add_endpoint(
            "xml",
            kind="xml_pull",
            url="http://example.com/feed.xml",
            mapping={"post_root": "/rss/item", "nodes": {"x": [{"field": "nonsense"}]}},
        )
        assert transport_factory.create(endpoint_id) is None

    def test_missing_required_setting(self, transport_factory, add_endpoint, encryptor):
        endpoint_id = add_endpoint(
            "site", kind="xmlrpc_push", url="http://example.com", password=encryptor.encrypt("secret")
        )
        assert transport_factory.create(endpoint_id) is None

    def test_secret_decrypted(self, transport_factory, add_endpoint, encryptor):
        endpoint_id = add_endpoint(
            "site",
            kind="xmlrpc_push",
            url="http://example.com",
            username="admin",
            password=encryptor.encrypt("secret"),
        )

        transport = transport_factory.create_push_transport(endpoint_id)

        assert isinstance(transport, XmlRpcTransport)
        assert transport.password == "secret"
        assert transport.url == "http://example.com/xmlrpc.php"

    def test_xmlrpc_is_also_a_pull_transport(self, transport_factory, add_endpoint, encryptor):
        endpoint_id = add_endpoint(
            "site",
            kind="xmlrpc_push",
            url="http://example.com",
            username="admin",
            password=encryptor.encrypt("secret"),
        )
        assert isinstance(transport_factory.create_pull_transport(endpoint_id), XmlRpcTransport)

    def test_undecryptable_secret(self, transport_factory, add_endpoint):
        endpoint_id = add_endpoint("rest", kind="rest_push", token="not-a-token", blog_id="123")
        assert transport_factory.create(endpoint_id) is None

    def test_secret_encrypted_with_another_key(self, transport_factory, add_endpoint):
        other = FernetEncryptor(FernetEncryptor.generate_key())
        endpoint_id = add_endpoint("rest", kind="rest_push", token=other.encrypt("t"), blog_id="123")
        assert transport_factory.create(endpoint_id) is None

    def test_no_encryptor_for_secret_kind(self, store, add_endpoint, encryptor):
        endpoint_id = add_endpoint("rest", kind="rest_push", token=encryptor.encrypt("t"), blog_id="123")
        assert TransportFactory(store).create(endpoint_id) is None

    def test_rest_push(self, transport_factory, add_endpoint, encryptor):
        endpoint_id = add_endpoint("rest", kind="rest_push", token=encryptor.encrypt("t0k"), blog_id="123")

        transport = transport_factory.create_push_transport(endpoint_id)

        assert isinstance(transport, RestPushTransport)
        assert transport.token == "t0k"
        assert transport.blog_id == "123"

    def test_supports(self, transport_factory):
        assert transport_factory.supports_pull(TransportKind.RSS_PULL)
        assert not transport_factory.supports_push(TransportKind.RSS_PULL)
        assert transport_factory.supports_push(TransportKind.REST_PUSH)
        assert transport_factory.supports_pull(TransportKind.XMLRPC_PUSH)
        assert transport_factory.supports_push(TransportKind.XMLRPC_PUSH)
        assert not transport_factory.supports_pull(None)

    def test_available_transports(self, transport_factory):
        available = {t["id"]: t for t in transport_factory.get_available_transports()}

        assert set(available) == {"xml_pull", "rss_pull", "rest_push", "xmlrpc_push"}
        assert available["xmlrpc_push"]["modes"] == ["pull", "push"]
        assert available["rss_pull"]["modes"] == ["pull"]
