"""Feed mapping engine: applies a FeedMapping to a parsed XML document."""

import logging
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Tuple

import pendulum
from lxml import etree

from ..errors import FeedMappingError
from .models import FeedMapping, FieldMappingRule

logger = logging.getLogger(__name__)

PHOTO_DEFAULTS = {
    "caption": "",
    "credit": "",
    "description": "",
    "url": "",
    "width": "",
    "height": "",
    "position": "",
}


class FeedMapper:
    """Turn a parsed document into raw record dicts according to a mapping."""

    def __init__(self, mapping: FeedMapping) -> None:
        """Initialize mapper."""
        self.mapping = mapping
        self.absolute_rules, self.item_rules, self.enclosure_rules = self._partition(mapping.rules())

    @staticmethod
    def _partition(
        rules: List[FieldMappingRule],
    ) -> Tuple[List[FieldMappingRule], List[FieldMappingRule], List[FieldMappingRule]]:
        """Split rules into document-level, item-level and enclosure rules."""
        absolute, item, enclosure = [], [], []
        for rule in rules:
            if rule.is_item:
                item.append(rule)
            elif rule.is_enclosure:
                enclosure.append(rule)
            else:
                absolute.append(rule)
        return absolute, item, enclosure

    def map(self, document: etree._Element) -> List[Dict[str, Any]]:
        """
        Map a document to raw record dicts.

        Raises:
            FeedMappingError: If no item nodes match or a path fails to evaluate
        """
        abs_fields: Dict[str, Any] = {}
        abs_meta: Dict[str, Any] = {}
        abs_terms: Dict[str, List[str]] = {}

        for rule in self.absolute_rules:
            values = self._evaluate(document, rule)
            if not values:
                continue
            if rule.is_meta:
                abs_meta[rule.field] = values[0]
            elif rule.is_tax:
                abs_terms[rule.field] = [values[0]]
            else:
                abs_fields[rule.content_field] = values[0]

        items = self._select_nodes(document, self.mapping.post_root)
        if not items:
            raise FeedMappingError(f'No item nodes found using XPath "{self.mapping.post_root}"')

        logger.debug("Mapping %d item nodes", len(items))

        records = []
        for position, item in enumerate(items):
            records.append(self._map_item(item, position, abs_fields, abs_meta, abs_terms))

        return records

    def _map_item(
        self,
        item: etree._Element,
        position: int,
        abs_fields: Dict[str, Any],
        abs_meta: Dict[str, Any],
        abs_terms: Dict[str, List[str]],
    ) -> Dict[str, Any]:
        """Map one item node."""
        fields: Dict[str, Any] = {
            "content_type": self.mapping.default_content_type,
            "status": self.mapping.default_status,
        }
        fields.update(abs_fields)
        metadata = dict(abs_meta)
        terms = {taxonomy: list(values) for taxonomy, values in abs_terms.items()}

        for rule in self.item_rules:
            values = self._evaluate(item, rule)
            if not values:
                continue
            if rule.is_meta:
                metadata[rule.field] = values if len(values) > 1 else values[0]
            elif rule.is_tax:
                terms[rule.field] = [values[0]]
            else:
                fields[rule.content_field] = values[0]

        if self.mapping.categories:
            terms.setdefault("category", list(self.mapping.categories))

        enclosures = []
        if self.mapping.enc_parent and self.enclosure_rules:
            enclosures = self._enclosures(item)

        if "position" not in metadata:
            metadata["position"] = position

        guid = self._guid(metadata)
        if guid:
            fields["guid"] = guid

        if "published_at" in fields:
            fields["published_at"] = parse_date(fields["published_at"])

        fields["metadata"] = metadata
        fields["terms"] = terms
        fields["enclosures"] = enclosures
        return fields

    def _guid(self, metadata: Dict[str, Any]) -> Optional[str]:
        """Remote guid from the configured identifier field."""
        if not self.mapping.id_field:
            return None
        value = metadata.get(self.mapping.id_field)
        if isinstance(value, list):
            value = value[0] if value else None
        return str(value) if value not in (None, "") else None

    def _enclosures(self, item: etree._Element) -> List[Dict[str, Any]]:
        """Collect enclosures below the enclosure parent of an item."""
        enclosures = []
        for index, node in enumerate(self._select_nodes(item, self.mapping.enc_parent)):
            enclosure: Dict[str, Any] = dict(PHOTO_DEFAULTS) if self.mapping.enc_is_photo else {}
            for rule in self.enclosure_rules:
                values = self._evaluate(node, rule)
                enclosure[rule.field] = values[0] if values else ""

            # Fall back to document order when the feed carries no position
            try:
                enclosure["position"] = int(enclosure.get("position"))
            except (TypeError, ValueError):
                enclosure["position"] = index

            enclosures.append(enclosure)
        return enclosures

    def _evaluate(self, node: etree._Element, rule: FieldMappingRule) -> List[str]:
        """Evaluate one rule against a node, returning every match as a string."""
        if rule.is_literal:
            return [rule.literal_value]

        result = self._xpath(node, rule.path)
        if not isinstance(result, list):
            result = [result]
        return [node_text(value) for value in result]

    def _select_nodes(self, node: etree._Element, path: str) -> List[etree._Element]:
        """Evaluate a path that must select element nodes."""
        result = self._xpath(node, path)
        if not isinstance(result, list):
            return []
        return [value for value in result if isinstance(value, etree._Element)]

    def _xpath(self, node: etree._Element, path: str) -> Any:
        try:
            return node.xpath(path, namespaces=self.mapping.namespaces or None)
        except etree.XPathError as e:
            raise FeedMappingError(f'XPath "{path}" could not be evaluated: {e}')


def node_text(value: Any) -> str:
    """String value of an XPath result item."""
    if isinstance(value, etree._Element):
        return "".join(value.itertext()).strip()
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_date(value: Any) -> Any:
    """Parse ISO 8601 or RFC 822 date strings; anything unparseable becomes None."""
    if not isinstance(value, str):
        return value
    if not value:
        return None
    try:
        return pendulum.parse(value, strict=False)
    except (ValueError, TypeError):
        pass
    try:
        return parsedate_to_datetime(value)
    except (ValueError, TypeError):
        logger.debug("Unparseable date '%s'", value)
        return None
