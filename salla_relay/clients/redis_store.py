"""Redis-backed key-value store (Upstash and self-hosted Redis alike)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, Optional
from urllib.parse import urlparse

import redis

from salla_relay.clients.kv_backend import StoreUnavailableError
from salla_relay.core.config import StoreSettings

logger = logging.getLogger(__name__)


def build_redis_client(settings: StoreSettings) -> redis.Redis:
    """Create a Redis client from ``REDIS_URL`` with bounded socket timeouts."""
    kwargs: Dict[str, Any] = {
        "decode_responses": True,
        "socket_connect_timeout": 5,
        "socket_timeout": 5,
        "health_check_interval": 30,
    }
    # REDIS_PASSWORD only applies when the URL carries no credentials.
    if not urlparse(settings.redis_url).password and settings.redis_password:
        kwargs["password"] = settings.redis_password
    return redis.from_url(settings.redis_url, **kwargs)


class RedisStore:
    """Stores each document as a JSON string under its key."""

    name = "redis"

    def __init__(self, client: redis.Redis, *, scan_count: int = 100) -> None:
        self._client = client
        self._scan_count = scan_count

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            raise StoreUnavailableError(f"Redis GET failed for {key}: {exc}") from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            self._client.set(key, json.dumps(value, sort_keys=True))
        except redis.RedisError as exc:
            raise StoreUnavailableError(f"Redis SET failed for {key}: {exc}") from exc

    def iter_keys(self, prefix: str) -> Iterator[str]:
        # SCAN rather than KEYS so large keyspaces do not block the server.
        pattern = _escape_glob(prefix) + "*"
        try:
            for key in self._client.scan_iter(match=pattern, count=self._scan_count):
                yield key.decode("utf-8") if isinstance(key, bytes) else key
        except redis.RedisError as exc:
            raise StoreUnavailableError(f"Redis SCAN failed: {exc}") from exc


def _escape_glob(value: str) -> str:
    for char in ("\\", "*", "?", "[", "]"):
        value = value.replace(char, f"\\{char}")
    return value


__all__ = ["RedisStore", "build_redis_client"]
