"""
Domain models for tenant OAuth token persistence.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class TokenGrant(BaseModel):
    """Credentials returned by a token exchange with the identity provider."""

    access_token: str
    refresh_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds.")


class TenantTokenRecord(BaseModel):
    """The single token record held for a merchant."""

    tenant_id: str = Field(..., description="Stable merchant identifier.")
    access_token: str
    refresh_token: str
    expires_at: int = Field(..., description="Expiry as epoch milliseconds.")

    @field_validator("tenant_id", mode="before")
    @classmethod
    def _coerce_tenant_id(cls, value: Any) -> Any:
        """Salla sends merchant ids as integers."""
        if isinstance(value, int):
            return str(value)
        return value

    @classmethod
    def issue(
        cls,
        tenant_id: str,
        grant: TokenGrant,
        *,
        issued_at_ms: Optional[int] = None,
    ) -> "TenantTokenRecord":
        """Build a record from a freshly issued grant."""
        issued_at = now_ms() if issued_at_ms is None else issued_at_ms
        return cls(
            tenant_id=tenant_id,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=issued_at + grant.expires_in * 1000,
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the stored document layout."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "merchant": self.tenant_id,
        }

    @classmethod
    def from_document(cls, tenant_id: str, document: Dict[str, Any]) -> "TenantTokenRecord":
        """Rebuild a record; the key's tenant id wins over the stored copy."""
        return cls(
            tenant_id=tenant_id,
            access_token=document.get("access_token"),
            refresh_token=document.get("refresh_token"),
            expires_at=document.get("expires_at"),
        )


class TenantRefreshOutcome(BaseModel):
    """Result of refreshing one tenant during a bulk run."""

    tenant_id: str
    success: bool
    error: Optional[str] = None


class RefreshReport(BaseModel):
    """Aggregate result of a bulk refresh run."""

    outcomes: list[TenantRefreshOutcome] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> list[TenantRefreshOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]


__all__ = [
    "RefreshReport",
    "TenantRefreshOutcome",
    "TenantTokenRecord",
    "TokenGrant",
    "now_ms",
]
