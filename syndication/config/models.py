"""Configuration models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.endpoint import TransportKind


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("syndication", description="Database name")
    user: str = Field("syndication", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class PullConfig(BaseModel):
    """Pull cycle configuration."""

    interval_seconds: int = Field(3600, description="Recurring pull interval", ge=60)
    selected_groups: List[str] = Field(
        default_factory=list,
        description="Endpoint groups whose members are pulled on schedule",
    )
    update_pulled_content: bool = Field(False, description="Update local items that were already pulled")
    max_attempts: int = Field(0, description="Consecutive failures before disabling (0 = no limit)", ge=0)
    auto_retry_limit: int = Field(3, description="Short-horizon retries after a failure", ge=0, le=10)
    auto_retry_delay_seconds: int = Field(60, description="Delay before an auto-retry", ge=1)
    lock_ttl_seconds: int = Field(300, description="Lease TTL guarding one endpoint's pull", ge=1)


class PushConfig(BaseModel):
    """Push cycle configuration."""

    delete_pushed_content: bool = Field(False, description="Delete remote copies when local content is deleted")
    lock_ttl_seconds: int = Field(300, description="Lease TTL guarding one content item's push", ge=1)


class ScheduleConfig(BaseModel):
    """Schedule refresh configuration."""

    refresh_marker_ttl_seconds: int = Field(120, description="Debounce marker TTL", ge=1)
    refresh_delay_seconds: int = Field(60, description="Delay before the deferred refresh runs", ge=0)


class TransportConfig(BaseModel):
    """Network transport configuration."""

    timeout_seconds: float = Field(45.0, description="Per-call timeout", gt=0)
    user_agent: str = Field("syndication-engine", description="User agent sent to endpoints")


class EncryptionConfig(BaseModel):
    """Credential encryption configuration."""

    key: Optional[str] = Field(None, description="Fernet key (prefer key_env)")
    key_env: Optional[str] = Field("SYNDICATION_ENCRYPTION_KEY", description="Environment variable for the key")


class NotificationConfig(BaseModel):
    """Operator notification configuration."""

    webhook_url: Optional[str] = Field(None, description="Slack-compatible webhook URL")
    webhook_url_env: Optional[str] = Field(None, description="Environment variable for the webhook URL")
    events: List[str] = Field(
        default_factory=lambda: ["endpoint_disabled", "feed_error", "push_failure"],
        description="Event kinds forwarded to the webhook",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Console log level")
    log_dir: Optional[str] = Field(None, description="Directory for rotated log files")
    retention_days: int = Field(30, description="Days of log files to keep", ge=1)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    pull: PullConfig = Field(default_factory=PullConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    encryption: EncryptionConfig = Field(default_factory=EncryptionConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class EndpointConfig(BaseModel):
    """Endpoint configuration from endpoints.yaml."""

    name: str = Field(..., description="Endpoint name")
    transport_kind: str = Field(..., description="Transport kind")
    enabled: bool = Field(True, description="Whether endpoint is enabled")
    groups: List[str] = Field(default_factory=list, description="Group slugs")
    settings: Dict[str, Any] = Field(default_factory=dict, description="Transport-specific settings")

    @field_validator("transport_kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        """Validate that the transport kind is known."""
        if TransportKind.parse(v) is None:
            known = ", ".join(k.value for k in TransportKind)
            raise ValueError(f"Unknown transport kind '{v}' (expected one of: {known})")
        return v
