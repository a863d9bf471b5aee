"""Declarative mapping of structured feed documents to content records."""

from .engine import FeedMapper, node_text, parse_date
from .models import CONTENT_FIELD_ALIASES, CONTENT_FIELDS, FeedMapping, FieldMappingRule, MappingTarget

__all__ = [
    "CONTENT_FIELDS",
    "CONTENT_FIELD_ALIASES",
    "FeedMapper",
    "FeedMapping",
    "FieldMappingRule",
    "MappingTarget",
    "node_text",
    "parse_date",
]
