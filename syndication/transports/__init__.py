"""Transports: the wire-level clients for each endpoint kind."""

from .base import (
    PullCapable,
    PullTransport,
    PushCapable,
    PushTransport,
    Transport,
    TransportHooks,
    TransportOptions,
)
from .factory import TransportFactory
from .registry import PULL, PUSH, TransportSpec, default_registry
from .rest_push import RestPushTransport
from .rss_pull import RssPullTransport
from .xml_pull import XmlPullTransport
from .xmlrpc_push import XmlRpcTransport

__all__ = [
    "PULL",
    "PUSH",
    "PullCapable",
    "PullTransport",
    "PushCapable",
    "PushTransport",
    "RestPushTransport",
    "RssPullTransport",
    "Transport",
    "TransportFactory",
    "TransportHooks",
    "TransportOptions",
    "TransportSpec",
    "XmlPullTransport",
    "XmlRpcTransport",
    "default_registry",
]
