"""Telemetry settings with Pydantic.

Values come from keyword arguments, ``TELEMETRY_``-prefixed environment
variables (nested with ``__``, e.g. ``TELEMETRY_LOGGING__API_KEY``) or a
``.env`` file.
"""

from functools import lru_cache

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SOURCE = "jwt-pizza-service"


class LoggingSettings(BaseModel):
    """Log push endpoint and credentials."""

    url: str = ""
    user_id: str = Field(
        default="", validation_alias=AliasChoices("user_id", "userId")
    )
    api_key: str = Field(
        default="", validation_alias=AliasChoices("api_key", "apiKey")
    )


class MetricsSettings(BaseModel):
    """Metrics push endpoint, credentials and component label."""

    url: str = ""
    api_key: str = Field(
        default="", validation_alias=AliasChoices("api_key", "apiKey")
    )
    source: str = DEFAULT_SOURCE


class TelemetrySettings(BaseSettings):
    """Telemetry pipeline configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TELEMETRY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)

    # Disables the flush scheduler and log-rejection diagnostics
    test_mode: bool = False

    flush_interval_seconds: float = 60.0
    push_timeout_seconds: float = 5.0
    max_queue_size: int = 1000
    shutdown_timeout_seconds: float = 2.0
    install_exception_hooks: bool = True

    @property
    def component(self) -> str:
        """Component label attached to every log stream."""
        return self.metrics.source or DEFAULT_SOURCE


@lru_cache
def get_settings() -> TelemetrySettings:
    """Get cached settings instance."""
    return TelemetrySettings()
