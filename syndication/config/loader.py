"""Configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel, EndpointConfig

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize config manager."""
        if config_path is None:
            config_path = Path.home() / ".config" / "syndication" / "config.yaml"
        self.config_path = config_path
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def endpoints_path(self) -> Path:
        """Path of the endpoints file next to the config file."""
        return self.config_path.parent / "endpoints.yaml"

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        # Handle password from environment if specified
        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config

    def get_encryption_key(self) -> Optional[str]:
        """Get the credential encryption key."""
        encryption = self.config.encryption
        if encryption.key_env:
            key = os.environ.get(encryption.key_env)
            if key:
                return key
        return encryption.key

    def get_webhook_url(self) -> Optional[str]:
        """Get the notification webhook URL."""
        notifications = self.config.notifications
        if notifications.webhook_url_env:
            url = os.environ.get(notifications.webhook_url_env)
            if url:
                return url
        return notifications.webhook_url


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def load_endpoints(endpoints_path: Path) -> List[EndpointConfig]:
    """Load endpoints from YAML file."""
    if not endpoints_path.exists():
        raise FileNotFoundError(f"Endpoints file not found: {endpoints_path}")

    try:
        with open(endpoints_path) as f:
            endpoints_data = yaml.safe_load(f)

        if endpoints_data is None or "endpoints" not in endpoints_data:
            return []

        endpoints = []
        for endpoint_data in endpoints_data["endpoints"]:
            try:
                endpoints.append(EndpointConfig(**endpoint_data))
            except ValidationError as e:
                logger.warning("Skipping invalid endpoint %s: %s", endpoint_data.get("name", "unknown"), e)

        return endpoints
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in endpoints file: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def save_endpoints(endpoints: List[EndpointConfig], endpoints_path: Path) -> None:
    """Save endpoints to YAML file."""
    endpoints_path.parent.mkdir(parents=True, exist_ok=True)

    endpoints_data = {"endpoints": [e.model_dump() for e in endpoints]}

    with open(endpoints_path, "w") as f:
        yaml.dump(endpoints_data, f, default_flow_style=False, sort_keys=False)
