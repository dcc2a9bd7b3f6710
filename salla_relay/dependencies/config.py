"""
FastAPI dependency utilities for injecting configuration and guarding
scheduler-only endpoints.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from salla_relay.api.errors import UnauthorizedError
from salla_relay.core.config import AppSettings, get_settings
from salla_relay.services.signatures import verify_bearer


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def require_scheduler_secret(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """Reject requests that do not carry ``Bearer <CRON_SECRET>``."""
    if not verify_bearer(settings.scheduler.cron_secret, authorization):
        raise UnauthorizedError("Unauthorized")


SettingsDependency = Depends(get_app_settings)
SchedulerAuthDependency = Depends(require_scheduler_secret)

__all__ = [
    "SchedulerAuthDependency",
    "SettingsDependency",
    "get_app_settings",
    "require_scheduler_secret",
]
