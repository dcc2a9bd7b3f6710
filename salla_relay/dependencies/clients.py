"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from salla_relay.clients import (
    DownstreamNotifier,
    DynamoDBStore,
    KeyValueBackend,
    RedisStore,
    SallaOAuthClient,
    SQLiteStore,
    build_redis_client,
)
from salla_relay.core.config import AppSettings, get_settings
from salla_relay.dependencies.config import get_app_settings
from salla_relay.services import (
    BulkRefreshCoordinator,
    TokenStore,
    WebhookDispatcher,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_kv_backend() -> KeyValueBackend:
    """Provide the key-value backend selected by ``TOKEN_STORE_BACKEND``."""
    store_settings = _settings().store
    if store_settings.backend == "redis":
        return RedisStore(build_redis_client(store_settings))
    if store_settings.backend == "dynamodb":
        return DynamoDBStore(store_settings)
    return SQLiteStore(store_settings.db_path)


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the tenant token store."""
    return TokenStore(get_kv_backend(), key_prefix=_settings().store.key_prefix)


@lru_cache()
def get_salla_oauth_client() -> SallaOAuthClient:
    """Create a singleton Salla OAuth client."""
    return SallaOAuthClient(_settings().salla)


@lru_cache()
def get_downstream_notifier() -> DownstreamNotifier:
    """Provide the n8n notifier."""
    return DownstreamNotifier(timeout_seconds=_settings().notifications.timeout_seconds)


def get_refresh_coordinator(
    store: Annotated[TokenStore, Depends(get_token_store)],
    oauth_client: Annotated[SallaOAuthClient, Depends(get_salla_oauth_client)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> BulkRefreshCoordinator:
    """Build a bulk refresh coordinator for one run."""
    return BulkRefreshCoordinator(store, oauth_client, settings.refresh)


def get_webhook_dispatcher(
    store: Annotated[TokenStore, Depends(get_token_store)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> WebhookDispatcher:
    """Build a webhook dispatcher bound to the token store."""
    return WebhookDispatcher(store, settings.notifications)


__all__ = [
    "get_downstream_notifier",
    "get_kv_backend",
    "get_refresh_coordinator",
    "get_salla_oauth_client",
    "get_token_store",
    "get_webhook_dispatcher",
]
