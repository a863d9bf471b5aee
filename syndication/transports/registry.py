"""Registry of transport kinds: settings model, required settings and implementation."""

from typing import Dict, FrozenSet, Tuple, Type

from pydantic import BaseModel

from ..models import TransportKind
from .base import Transport
from .rest_push import RestPushTransport
from .rss_pull import RssPullTransport
from .settings import RestPushSettings, RssPullSettings, XmlPullSettings, XmlRpcSettings
from .xml_pull import XmlPullTransport
from .xmlrpc_push import XmlRpcTransport

PULL = "pull"
PUSH = "push"


class TransportSpec:
    """Everything the factory needs to build one kind of transport."""

    def __init__(
        self,
        kind: TransportKind,
        name: str,
        modes: Tuple[str, ...],
        settings_model: Type[BaseModel],
        transport_class: Type[Transport],
        required: Tuple[str, ...] = (),
        secret_fields: Tuple[str, ...] = (),
    ) -> None:
        self.kind = kind
        self.name = name
        self.modes: FrozenSet[str] = frozenset(modes)
        self.settings_model = settings_model
        self.transport_class = transport_class
        self.required = required
        self.secret_fields = secret_fields

    def client_data(self) -> Dict[str, object]:
        """Descriptor shown to operators."""
        return {"id": self.kind.value, "name": self.name, "modes": sorted(self.modes)}


def default_registry() -> Dict[TransportKind, TransportSpec]:
    """Built-in transport kinds."""
    specs = [
        TransportSpec(
            TransportKind.XML_PULL,
            "XML Feed",
            (PULL,),
            XmlPullSettings,
            XmlPullTransport,
            required=("url",),
        ),
        TransportSpec(
            TransportKind.RSS_PULL,
            "RSS Feed",
            (PULL,),
            RssPullSettings,
            RssPullTransport,
            required=("feed_url",),
        ),
        TransportSpec(
            TransportKind.REST_PUSH,
            "WordPress.com REST",
            (PUSH,),
            RestPushSettings,
            RestPushTransport,
            required=("token", "blog_id"),
            secret_fields=("token",),
        ),
        TransportSpec(
            TransportKind.XMLRPC_PUSH,
            "WordPress XML-RPC",
            (PUSH, PULL),
            XmlRpcSettings,
            XmlRpcTransport,
            required=("url", "username", "password"),
            secret_fields=("password",),
        ),
    ]
    return {spec.kind: spec for spec in specs}
