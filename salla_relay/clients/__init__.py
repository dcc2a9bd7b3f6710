"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBStore
from .kv_backend import (
    KeyValueBackend,
    MalformedTokenRecordError,
    StoreUnavailableError,
    TokenStoreError,
)
from .notifier import DownstreamNotifier, Notification
from .redis_store import RedisStore, build_redis_client
from .salla_auth import (
    OAuthTokenRefreshError,
    RefreshNetworkError,
    RefreshRejectedError,
    SallaOAuthClient,
)
from .sqlite_store import SQLiteStore

__all__ = [
    "DownstreamNotifier",
    "DynamoDBStore",
    "KeyValueBackend",
    "MalformedTokenRecordError",
    "Notification",
    "OAuthTokenRefreshError",
    "RedisStore",
    "RefreshNetworkError",
    "RefreshRejectedError",
    "SQLiteStore",
    "SallaOAuthClient",
    "StoreUnavailableError",
    "TokenStoreError",
    "build_redis_client",
]
