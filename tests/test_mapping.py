"""Tests for the feed mapping engine."""

import pytest
from lxml import etree

from syndication.errors import FeedMappingError
from syndication.mapping import FeedMapper, FeedMapping

RSS = b"""<?xml version="1.0"?>
<rss>
  <channel><title>Channel</title></channel>
  <item>
    <title>First</title><guid>a-1</guid><tag>x</tag>
    <photo><src>http://img/1.jpg</src><caption>One</caption></photo>
    <photo><src>http://img/2.jpg</src></photo>
  </item>
  <item><title>Second</title><guid>a-2</guid><tag>x</tag><tag>y</tag></item>
  <item><title>Third</title><guid>a-3</guid></item>
</rss>
"""


def mapping(**overrides) -> FeedMapping:
    data = {
        "post_root": "/rss/item",
        "id_field": "remote_guid",
        "nodes": {
            "title": [{"field": "post_title", "is_item": True}],
            "guid": [{"field": "remote_guid", "is_item": True, "is_meta": True}],
            "tag": [{"field": "tags", "is_item": True, "is_meta": True}],
            "string(blog)": [{"field": "post_type", "is_item": True}],
            "/rss/channel/title": [{"field": "channel", "is_meta": True}],
        },
    }
    data.update(overrides)
    return FeedMapping(**data)


@pytest.fixture
def document():
    return etree.fromstring(RSS)


class TestFeedMapper:
    """Tests for FeedMapper."""

    def test_three_items_with_literal_content_type(self, document):
        """Every item gets the literal content type and its ordinal position."""
        records = FeedMapper(mapping()).map(document)

        assert len(records) == 3
        assert [r["content_type"] for r in records] == ["blog", "blog", "blog"]
        assert [r["metadata"]["position"] for r in records] == [0, 1, 2]
        assert [r["title"] for r in records] == ["First", "Second", "Third"]

    def test_guid_from_id_field(self, document):
        records = FeedMapper(mapping()).map(document)
        assert [r["guid"] for r in records] == ["a-1", "a-2", "a-3"]

    def test_metadata_scalar_or_list(self, document):
        """One match stores a scalar, several matches a list, none stores nothing."""
        records = FeedMapper(mapping()).map(document)

        assert records[0]["metadata"]["tags"] == "x"
        assert records[1]["metadata"]["tags"] == ["x", "y"]
        assert "tags" not in records[2]["metadata"]

    def test_absolute_values_merged_into_items(self, document):
        records = FeedMapper(mapping()).map(document)
        assert all(r["metadata"]["channel"] == "Channel" for r in records)

    def test_item_value_overrides_absolute(self, document):
        m = mapping(nodes={
            "string(top)": [{"field": "source", "is_meta": True}],
            "title": [{"field": "source", "is_item": True, "is_meta": True}],
        })
        records = FeedMapper(m).map(document)
        assert records[0]["metadata"]["source"] == "First"

    def test_zero_items_is_an_error(self, document):
        with pytest.raises(FeedMappingError):
            FeedMapper(mapping(post_root="/rss/entry")).map(document)

    def test_invalid_xpath_is_an_error(self, document):
        m = mapping(nodes={"title[": [{"field": "title", "is_item": True}]})
        with pytest.raises(FeedMappingError):
            FeedMapper(m).map(document)

    def test_taxonomy_takes_first_match(self, document):
        m = mapping(nodes={"tag": [{"field": "post_tag", "is_item": True, "is_tax": True}]})
        records = FeedMapper(m).map(document)
        assert records[1]["terms"]["post_tag"] == ["x"]

    def test_default_categories(self, document):
        records = FeedMapper(mapping(categories=["imported"])).map(document)
        assert records[2]["terms"]["category"] == ["imported"]

    def test_defaults_applied(self, document):
        m = mapping(nodes={"title": [{"field": "title", "is_item": True}]})
        records = FeedMapper(m).map(document)
        assert records[0]["content_type"] == "post"
        assert records[0]["status"] == "draft"

    def test_photo_enclosures(self, document):
        m = mapping(
            enc_parent="photo",
            enc_is_photo=True,
            nodes={
                "title": [{"field": "title", "is_item": True}],
                "src": [{"field": "url", "is_photo": True}],
                "caption": [{"field": "caption", "is_enclosure": True}],
            },
        )
        records = FeedMapper(m).map(document)

        enclosures = records[0]["enclosures"]
        assert [e["url"] for e in enclosures] == ["http://img/1.jpg", "http://img/2.jpg"]
        assert [e["position"] for e in enclosures] == [0, 1]
        assert enclosures[0]["caption"] == "One"
        assert enclosures[1]["caption"] == ""
        assert enclosures[1]["credit"] == ""
        assert records[2]["enclosures"] == []

    def test_quoted_literal(self, document):
        m = mapping(nodes={"string('hello world')": [{"field": "excerpt", "is_item": True}]})
        records = FeedMapper(m).map(document)
        assert records[0]["excerpt"] == "hello world"

    def test_namespaces(self):
        doc = etree.fromstring(
            b'<feed xmlns:m="urn:m"><m:entry><m:name>N</m:name></m:entry></feed>'
        )
        m = FeedMapping(
            post_root="/feed/m:entry",
            namespaces={"m": "urn:m"},
            nodes={"m:name": [{"field": "title", "is_item": True}]},
        )
        assert FeedMapper(m).map(doc)[0]["title"] == "N"

    def test_published_at_parsed(self):
        doc = etree.fromstring(b"<r><i><d>Mon, 06 Sep 2021 16:45:00 +0000</d></i></r>")
        m = FeedMapping(post_root="/r/i", nodes={"d": [{"field": "post_date", "is_item": True}]})
        published = FeedMapper(m).map(doc)[0]["published_at"]
        assert published.year == 2021 and published.month == 9 and published.day == 6


class TestFeedMapping:
    """Tests for mapping validation."""

    def test_unknown_content_field_rejected(self):
        with pytest.raises(ValueError):
            FeedMapping(post_root="/r", nodes={"x": [{"field": "nonsense", "is_item": True}]})

    def test_meta_field_names_are_free(self):
        m = FeedMapping(post_root="/r", nodes={"x": [{"field": "anything", "is_meta": True}]})
        assert m.rules()[0].field == "anything"

    def test_rules_flatten_multiple_targets(self):
        m = FeedMapping(post_root="/r", nodes={"x": [
            {"field": "title", "is_item": True},
            {"field": "copy", "is_item": True, "is_meta": True},
        ]})
        assert [r.path for r in m.rules()] == ["x", "x"]
