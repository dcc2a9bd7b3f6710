"""Typed access to tenant token records on a key-value backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

from pydantic import ValidationError

from salla_relay.clients.kv_backend import (
    KeyValueBackend,
    MalformedTokenRecordError,
)
from salla_relay.models.tokens import TenantTokenRecord, now_ms

logger = logging.getLogger(__name__)


class TokenStore:
    """Sole reader and writer of ``TenantTokenRecord`` documents.

    Records live under ``<prefix>:<tenant_id>:tokens``. Writes replace the
    whole document, so repeating a write with the same record is a no-op.
    """

    _SUFFIX = ":tokens"
    _PROBE_KEY = "diagnostics:probe"

    def __init__(self, backend: KeyValueBackend, *, key_prefix: str = "store") -> None:
        self._backend = backend
        self._prefix = f"{key_prefix}:"

    @property
    def backend_name(self) -> str:
        return getattr(self._backend, "name", type(self._backend).__name__)

    def key_for(self, tenant_id: str) -> str:
        return f"{self._prefix}{tenant_id}{self._SUFFIX}"

    def get(self, tenant_id: str) -> Optional[TenantTokenRecord]:
        try:
            document = self._backend.get(self.key_for(tenant_id))
        except ValueError as exc:
            raise MalformedTokenRecordError(
                f"Stored tokens for tenant {tenant_id} are not valid JSON."
            ) from exc
        if document is None:
            return None
        if not isinstance(document, dict):
            raise MalformedTokenRecordError(
                f"Stored tokens for tenant {tenant_id} are not a JSON object."
            )
        try:
            return TenantTokenRecord.from_document(tenant_id, document)
        except ValidationError as exc:
            raise MalformedTokenRecordError(
                f"Stored tokens for tenant {tenant_id} are missing required fields."
            ) from exc

    def set(self, tenant_id: str, record: TenantTokenRecord) -> None:
        if record.tenant_id != tenant_id:
            raise ValueError(
                f"Record for tenant {record.tenant_id} cannot be stored under {tenant_id}."
            )
        self._backend.set(self.key_for(tenant_id), record.to_document())

    def list_all(self) -> Iterator[str]:
        """Yield every tenant id with a stored record, in no particular order."""
        for key in self._backend.iter_keys(self._prefix):
            if not key.endswith(self._SUFFIX):
                continue
            tenant_id = key[len(self._prefix) : -len(self._SUFFIX)]
            if tenant_id:
                yield tenant_id

    def probe(self) -> Dict[str, Any]:
        """Write and read back a diagnostics document, then count tenants."""
        written = {"message": "probe", "timestamp": now_ms()}
        self._backend.set(self._PROBE_KEY, written)
        read_back = self._backend.get(self._PROBE_KEY)
        return {
            "round_trip": read_back == written,
            "written_at": written["timestamp"],
            "tenant_count": sum(1 for _ in self.list_all()),
        }


__all__ = ["TokenStore"]
