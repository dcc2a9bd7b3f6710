"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the refresh worker and the
operational scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import AliasChoices, AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class SallaSettings(BaseSettings):
    """Configuration required for interacting with the Salla identity provider."""

    model_config = SettingsConfigDict(extra="ignore")

    client_id: str = Field(..., validation_alias="SALLA_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="SALLA_CLIENT_SECRET")
    token_url: AnyHttpUrl = Field(
        "https://accounts.salla.sa/oauth2/token",
        validation_alias="SALLA_TOKEN_URL",
    )
    webhook_secret: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("SALLA_WEBHOOK_SECRET", "SALLA_SECRET"),
        description="Shared secret used to sign inbound webhook bodies.",
    )
    signature_header: str = Field(
        "x-salla-signature", validation_alias="SALLA_SIGNATURE_HEADER"
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="SALLA_HTTP_TIMEOUT")


class SchedulerSettings(BaseSettings):
    """Shared secret presented by the scheduler triggering bulk refreshes."""

    model_config = SettingsConfigDict(extra="ignore")

    cron_secret: Optional[str] = Field(None, validation_alias="CRON_SECRET")


class NotificationSettings(BaseSettings):
    """Downstream n8n endpoints, one per event class."""

    model_config = SettingsConfigDict(extra="ignore")

    payment_webhook_url: Optional[AnyHttpUrl] = Field(
        None, validation_alias="N8N_PAYMENT_WEBHOOK_URL"
    )
    cancellation_webhook_url: Optional[AnyHttpUrl] = Field(
        None, validation_alias="N8N_CANCELLATION_WEBHOOK_URL"
    )
    logging_webhook_url: Optional[AnyHttpUrl] = Field(
        None,
        validation_alias="N8N_LOGGING_WEBHOOK_URL",
        description="Receives order.created events for bookkeeping.",
    )
    refund_webhook_url: Optional[AnyHttpUrl] = Field(
        None, validation_alias="N8N_REFUND_WEBHOOK_URL"
    )
    timeout_seconds: float = Field(5.0, validation_alias="NOTIFY_TIMEOUT_SECONDS")

    @field_validator(
        "payment_webhook_url",
        "cancellation_webhook_url",
        "logging_webhook_url",
        "refund_webhook_url",
        mode="before",
    )
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StoreSettings(BaseSettings):
    """Selects and configures the key-value backend holding tenant tokens."""

    model_config = SettingsConfigDict(extra="ignore")

    backend: Literal["sqlite", "redis", "dynamodb"] = Field(
        "sqlite", validation_alias="TOKEN_STORE_BACKEND"
    )
    db_path: str = Field("data/tokens.db", validation_alias="TOKEN_STORE_DB_PATH")
    redis_url: str = Field(
        "redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "KV_URL"),
    )
    redis_password: Optional[str] = Field(None, validation_alias="REDIS_PASSWORD")
    dynamodb_table_name: Optional[str] = Field(
        None, validation_alias="DYNAMODB_TABLE_NAME"
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    key_prefix: str = Field("store", validation_alias="TOKEN_KEY_PREFIX")

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value


class RefreshSettings(BaseSettings):
    """Bounds applied to a bulk refresh run."""

    model_config = SettingsConfigDict(extra="ignore")

    max_concurrency: int = Field(5, ge=1, validation_alias="REFRESH_MAX_CONCURRENCY")
    tenant_timeout_seconds: float = Field(
        30.0,
        gt=0,
        validation_alias="REFRESH_TENANT_TIMEOUT",
        description="Upper bound for one tenant's read-refresh-write sequence.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    salla: SallaSettings = Field(default_factory=SallaSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "NotificationSettings",
    "RefreshSettings",
    "SallaSettings",
    "SchedulerSettings",
    "StoreSettings",
    "get_settings",
]
