"""
Configuration models for logspool using Pydantic v2 Settings.

Values come from keyword arguments or the environment, e.g.
``LOGSPOOL_REDIS__HOST`` or ``LOGSPOOL_APPENDER__BATCH_SIZE``.
"""

from __future__ import annotations

from typing import cast

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

LATEST_CONFIG_SCHEMA_VERSION = "1.0"


class RedisSettings(BaseModel):
    """Connection and destination settings for the remote list store."""

    host: str = Field(default="localhost", description="Redis server address")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis server port")
    password: SecretStr | None = Field(
        default=None,
        description="Credential sent with AUTH after connecting",
    )
    key: str | None = Field(
        default=None,
        description="Destination list key; required at activation",
    )
    connect_timeout_seconds: float = Field(
        default=2.0,
        gt=0.0,
        description="Upper bound on connect plus authenticate",
    )
    push_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Upper bound on a single batch push",
    )

    @field_validator("key")
    @classmethod
    def _blank_key_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class AppenderSettings(BaseModel):
    """Batching, scheduling and retention policy."""

    period_ms: int = Field(default=500, gt=0, description="Flush tick interval")
    batch_size: int = Field(
        default=100,
        ge=1,
        description="Batch buffer capacity and max records per push",
    )
    purge_on_failure: bool = Field(
        default=True,
        description="Clear queued and buffered records when connecting fails",
    )
    always_batch: bool = Field(
        default=True,
        description="Only push full batches, except for the final flush",
    )
    queue_capacity: int = Field(
        default=0,
        ge=0,
        description="Bound on queued records; 0 means unbounded",
    )
    daemon_thread: bool = Field(
        default=True,
        description="Run the flush thread as a daemon thread",
    )
    final_flush_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Upper bound on the final flush performed by close()",
    )

    @property
    def period_seconds(self) -> float:
        return self.period_ms / 1000.0


class CoreSettings(BaseModel):
    """Ambient settings: naming, diagnostics, metrics, shutdown."""

    app_name: str = Field(default="logspool", description="Logical application name")
    internal_logging_enabled: bool = Field(
        default=True,
        description="Emit diagnostics for dropped records and store failures",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Enable Prometheus-compatible metrics",
    )
    atexit_close_enabled: bool = Field(
        default=True,
        description="Close registered appenders at interpreter exit",
    )

    @field_validator("app_name")
    @classmethod
    def _ensure_app_name_non_empty(cls, value: str) -> str:  # pragma: no cover
        value = value.strip()
        if not value:
            raise ValueError("app_name must not be empty")
        return value


class Settings(BaseSettings):
    """Top-level configuration model."""

    schema_version: str = Field(default=LATEST_CONFIG_SCHEMA_VERSION)

    core: CoreSettings = Field(default_factory=CoreSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    appender: AppenderSettings = Field(default_factory=AppenderSettings)

    model_config = SettingsConfigDict(
        env_prefix="LOGSPOOL_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        return cast(
            dict[str, object],
            self.model_dump(by_alias=True, exclude_none=True),
        )
