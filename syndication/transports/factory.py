"""Transport factory: builds a configured transport for an endpoint, or nothing."""

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..crypto import Encryptor
from ..errors import StoreError
from ..store.base import EndpointStore
from ..models import TransportKind
from .base import PullCapable, PushCapable, Transport, TransportOptions
from .registry import PULL, PUSH, TransportSpec, default_registry

logger = logging.getLogger(__name__)


class TransportFactory:
    """
    Create transports from stored endpoint configuration.

    The factory fails closed: any configuration problem (unknown endpoint,
    unknown kind, missing or undecryptable settings) is logged and yields
    None instead of an exception.
    """

    def __init__(
        self,
        endpoints: EndpointStore,
        encryptor: Optional[Encryptor] = None,
        registry: Optional[Dict[TransportKind, TransportSpec]] = None,
        options: Optional[TransportOptions] = None,
    ) -> None:
        """
        Initialize transport factory.

        Args:
            endpoints: EndpointStore used to look up endpoint configuration
            encryptor: Decrypts secret settings
            registry: Transport kinds (defaults to the built-in kinds)
            options: Options shared by every created transport
        """
        self.endpoints = endpoints
        self.encryptor = encryptor
        self.registry = registry if registry is not None else default_registry()
        self.options = options or TransportOptions()

    def create(self, endpoint_id: int) -> Optional[Transport]:
        """Build the transport configured for an endpoint."""
        try:
            endpoint = self.endpoints.get_endpoint(endpoint_id)
        except StoreError as e:
            logger.error("Could not load endpoint %s: %s", endpoint_id, e)
            return None

        if endpoint is None:
            logger.warning("Endpoint %s does not exist", endpoint_id)
            return None

        kind = endpoint.kind
        spec = self.registry.get(kind) if kind is not None else None
        if spec is None:
            logger.warning(
                "Endpoint '%s' has unknown transport kind '%s'", endpoint.name, endpoint.transport_kind
            )
            return None

        data = dict(endpoint.settings)
        for field in spec.secret_fields:
            data[field] = self._decrypt(endpoint.name, field, data.get(field))

        try:
            settings = spec.settings_model(**data)
        except ValidationError as e:
            logger.warning("Endpoint '%s' has invalid settings: %s", endpoint.name, e)
            return None

        missing = [field for field in spec.required if not getattr(settings, field, None)]
        if missing:
            logger.warning("Endpoint '%s' is missing settings: %s", endpoint.name, ", ".join(missing))
            return None

        return spec.transport_class.from_settings(endpoint.id, settings, self.options)

    def create_pull_transport(self, endpoint_id: int) -> Optional[PullCapable]:
        """Build a transport and check it can pull."""
        transport = self.create(endpoint_id)
        if transport is not None and not isinstance(transport, PullCapable):
            logger.warning("Transport of endpoint %s does not support pull", endpoint_id)
            return None
        return transport

    def create_push_transport(self, endpoint_id: int) -> Optional[PushCapable]:
        """Build a transport and check it can push."""
        transport = self.create(endpoint_id)
        if transport is not None and not isinstance(transport, PushCapable):
            logger.warning("Transport of endpoint %s does not support push", endpoint_id)
            return None
        return transport

    def get_available_transports(self) -> List[Dict[str, object]]:
        """Descriptors of every registered transport kind."""
        return [spec.client_data() for spec in self.registry.values()]

    def supports_pull(self, kind: Optional[TransportKind]) -> bool:
        spec = self.registry.get(kind) if kind is not None else None
        return spec is not None and PULL in spec.modes

    def supports_push(self, kind: Optional[TransportKind]) -> bool:
        spec = self.registry.get(kind) if kind is not None else None
        return spec is not None and PUSH in spec.modes

    def _decrypt(self, endpoint_name: str, field: str, value: Optional[str]) -> str:
        if not value:
            return ""
        if self.encryptor is None:
            logger.warning("No encryption key configured; cannot read '%s' of endpoint '%s'", field, endpoint_name)
            return ""
        plain = self.encryptor.decrypt(value)
        if plain is None:
            logger.warning("Could not decrypt '%s' of endpoint '%s'", field, endpoint_name)
            return ""
        return plain
