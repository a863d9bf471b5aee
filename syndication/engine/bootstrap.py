"""Wire a SyncEngine to the Postgres stores from configuration."""

import logging
from typing import Optional

import httpx

from ..config import Config
from ..crypto import FernetEncryptor
from ..notify import Notifier
from ..store import PostgresContentStore, PostgresEndpointStore, PostgresJobScheduler, PostgresLeaseStore
from ..transports import TransportFactory, TransportHooks, TransportOptions
from .engine import SyncEngine

logger = logging.getLogger(__name__)


def build_encryptor(config: Config) -> Optional[FernetEncryptor]:
    """Encryptor for endpoint secrets, or None without a key."""
    key = config.get_encryption_key()
    if not key:
        logger.warning("No encryption key configured; endpoints with secrets cannot be used")
        return None
    return FernetEncryptor(key)


def build_engine(
    config: Config,
    hooks: Optional[TransportHooks] = None,
    http_transport: Optional[httpx.BaseTransport] = None,
) -> SyncEngine:
    """Create a SyncEngine backed by Postgres."""
    settings = config.config
    db_config = config.get_db_config()

    content = PostgresContentStore(db_config)
    endpoints = PostgresEndpointStore(db_config)

    options = TransportOptions(
        timeout=settings.transport.timeout_seconds,
        user_agent=settings.transport.user_agent,
        hooks=hooks,
        content_loader=content.get_content,
        http_transport=http_transport,
    )
    factory = TransportFactory(endpoints, build_encryptor(config), options=options)
    notifier = Notifier(
        webhook_url=config.get_webhook_url(),
        webhook_events=settings.notifications.events,
        http_transport=http_transport,
    )

    return SyncEngine(
        content=content,
        endpoints=endpoints,
        leases=PostgresLeaseStore(db_config),
        scheduler=PostgresJobScheduler(db_config),
        factory=factory,
        config=settings,
        notifier=notifier,
    )
