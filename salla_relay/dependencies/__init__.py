"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_downstream_notifier,
    get_kv_backend,
    get_refresh_coordinator,
    get_salla_oauth_client,
    get_token_store,
    get_webhook_dispatcher,
)
from .config import (
    SchedulerAuthDependency,
    SettingsDependency,
    get_app_settings,
    require_scheduler_secret,
)

__all__ = [
    "SchedulerAuthDependency",
    "SettingsDependency",
    "get_app_settings",
    "get_downstream_notifier",
    "get_kv_backend",
    "get_refresh_coordinator",
    "get_salla_oauth_client",
    "get_token_store",
    "get_webhook_dispatcher",
    "require_scheduler_secret",
]
