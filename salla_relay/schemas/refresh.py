"""Response envelopes for the scheduler-facing endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from salla_relay.models.tokens import RefreshReport


class RefreshResult(BaseModel):
    """Per-merchant line of a bulk refresh response."""

    merchant: str
    success: bool
    error: Optional[str] = None


class RefreshTokensResponse(BaseModel):
    """Body returned by the bulk refresh endpoint."""

    success: bool = True
    refreshed: int = Field(..., description="Number of merchants processed.")
    succeeded: int
    failed: int
    results: list[RefreshResult] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: RefreshReport) -> "RefreshTokensResponse":
        return cls(
            refreshed=report.total,
            succeeded=report.succeeded,
            failed=report.failed,
            results=[
                RefreshResult(
                    merchant=outcome.tenant_id,
                    success=outcome.success,
                    error=outcome.error,
                )
                for outcome in report.outcomes
            ],
        )


class StoreCheckResponse(BaseModel):
    """Body returned by the store diagnostics endpoint."""

    success: bool = True
    backend: str
    probe: Dict[str, Any]
    tenant_count: int
    env_configured: Dict[str, bool]


__all__ = ["RefreshResult", "RefreshTokensResponse", "StoreCheckResponse"]
