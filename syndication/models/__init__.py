"""Data models for the syndication engine."""

from .content import ContentItem, Enclosure
from .endpoint import Endpoint, EndpointFilter, EndpointGroup, TransportKind
from .record import RECORD_DEFAULTS, NormalizedRecord
from .sync_state import SyncState, SyncStateMap, SyncStatus

__all__ = [
    "ContentItem",
    "Enclosure",
    "Endpoint",
    "EndpointFilter",
    "EndpointGroup",
    "NormalizedRecord",
    "RECORD_DEFAULTS",
    "SyncState",
    "SyncStateMap",
    "SyncStatus",
    "TransportKind",
]
