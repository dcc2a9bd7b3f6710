"""Shared contract for the key-value backends that hold tenant tokens."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Protocol


class TokenStoreError(Exception):
    """Base class for failures raised by the token storage layer."""


class StoreUnavailableError(TokenStoreError):
    """Raised when the backing store cannot be reached or refuses an operation."""


class MalformedTokenRecordError(TokenStoreError):
    """Raised when a stored document cannot be read as a token record."""


class KeyValueBackend(Protocol):
    """JSON document store addressed by string keys."""

    name: str

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def set(self, key: str, value: Dict[str, Any]) -> None:
        ...

    def iter_keys(self, prefix: str) -> Iterator[str]:
        ...


__all__ = [
    "KeyValueBackend",
    "MalformedTokenRecordError",
    "StoreUnavailableError",
    "TokenStoreError",
]
