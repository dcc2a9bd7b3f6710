"""Domain model exports."""

from .tokens import (
    RefreshReport,
    TenantRefreshOutcome,
    TenantTokenRecord,
    TokenGrant,
    now_ms,
)

__all__ = [
    "RefreshReport",
    "TenantRefreshOutcome",
    "TenantTokenRecord",
    "TokenGrant",
    "now_ms",
]
