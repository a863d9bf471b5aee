"""Configuration management for the syndication engine."""

from .loader import Config, load_config, load_endpoints, save_config, save_endpoints
from .models import (
    ConfigModel,
    EncryptionConfig,
    EndpointConfig,
    LoggingConfig,
    NotificationConfig,
    PullConfig,
    PushConfig,
    ScheduleConfig,
    TransportConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "EncryptionConfig",
    "EndpointConfig",
    "LoggingConfig",
    "NotificationConfig",
    "PullConfig",
    "PushConfig",
    "ScheduleConfig",
    "TransportConfig",
    "load_config",
    "load_endpoints",
    "save_config",
    "save_endpoints",
]
