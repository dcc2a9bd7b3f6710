"""
Bulk refresh of every tenant's OAuth tokens.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from salla_relay.clients.kv_backend import TokenStoreError
from salla_relay.clients.salla_auth import (
    OAuthTokenRefreshError,
    RefreshRejectedError,
    SallaOAuthClient,
)
from salla_relay.core.config import RefreshSettings
from salla_relay.models.tokens import (
    RefreshReport,
    TenantRefreshOutcome,
    TenantTokenRecord,
    now_ms,
)
from salla_relay.services.token_store import TokenStore

logger = logging.getLogger(__name__)


class BulkRefreshCoordinator:
    """Refresh all stored tenants in one pass with per-tenant isolation.

    Only enumeration failures escape ``run``; anything that goes wrong for a
    single tenant becomes a failed outcome in the report. Store calls run in
    worker threads so a blocked backend only holds up its own tenant. Two
    overlapping runs for the same tenant race last-write-wins.
    """

    def __init__(
        self,
        store: TokenStore,
        oauth_client: SallaOAuthClient,
        settings: Optional[RefreshSettings] = None,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._settings = settings or RefreshSettings()
        self._clock = clock

    async def run(self) -> RefreshReport:
        """Refresh every enumerable tenant and return the aggregate report."""
        # Drain enumeration first so a listing failure issues zero refresh calls.
        tenant_ids = await asyncio.to_thread(lambda: list(self._store.list_all()))
        logger.info("Starting bulk token refresh", extra={"tenants": len(tenant_ids)})

        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def bounded(tenant_id: str) -> Optional[TenantRefreshOutcome]:
            async with semaphore:
                return await self._refresh_with_timeout(tenant_id)

        results = await asyncio.gather(*(bounded(tenant_id) for tenant_id in tenant_ids))
        report = RefreshReport(outcomes=[outcome for outcome in results if outcome])
        logger.info(
            "Bulk token refresh finished: %s succeeded, %s failed",
            report.succeeded,
            report.failed,
        )
        return report

    async def _refresh_with_timeout(self, tenant_id: str) -> Optional[TenantRefreshOutcome]:
        timeout = self._settings.tenant_timeout_seconds
        try:
            return await asyncio.wait_for(self.refresh_tenant(tenant_id), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error("Token refresh timed out for merchant %s", tenant_id)
            return TenantRefreshOutcome(
                tenant_id=tenant_id,
                success=False,
                error=f"Timed out after {timeout:g}s",
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error refreshing merchant %s", tenant_id)
            return TenantRefreshOutcome(
                tenant_id=tenant_id,
                success=False,
                error=f"{exc.__class__.__name__}: {exc}",
            )

    async def refresh_tenant(self, tenant_id: str) -> Optional[TenantRefreshOutcome]:
        """Read, refresh and rewrite one tenant. ``None`` means nothing stored."""
        try:
            record = await asyncio.to_thread(self._store.get, tenant_id)
            if record is None:
                logger.info("Skipping merchant %s: no stored tokens", tenant_id)
                return None

            grant = await self._oauth.refresh_token(record.refresh_token)
            refreshed = TenantTokenRecord.issue(
                tenant_id, grant, issued_at_ms=self._clock()
            )
            await asyncio.to_thread(self._store.set, tenant_id, refreshed)
        except RefreshRejectedError as exc:
            logger.error(
                "Failed to refresh token for merchant %s: provider returned %s",
                tenant_id,
                exc.status_code,
            )
            return TenantRefreshOutcome(tenant_id=tenant_id, success=False, error=str(exc))
        except (OAuthTokenRefreshError, TokenStoreError) as exc:
            logger.error("Failed to refresh token for merchant %s: %s", tenant_id, exc)
            return TenantRefreshOutcome(tenant_id=tenant_id, success=False, error=str(exc))

        logger.info("Token refreshed for merchant %s", tenant_id)
        return TenantRefreshOutcome(tenant_id=tenant_id, success=True)


__all__ = ["BulkRefreshCoordinator"]
