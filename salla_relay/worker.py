"""Run bulk token refreshes outside the HTTP surface (cron, systemd timers)."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from salla_relay.clients.kv_backend import TokenStoreError
from salla_relay.core.config import get_settings
from salla_relay.core.logging import configure_logging
from salla_relay.dependencies.clients import get_salla_oauth_client, get_token_store
from salla_relay.models.tokens import RefreshReport
from salla_relay.services.token_refresh import BulkRefreshCoordinator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ENUMERATION_FAILED = 1


class TokenRefreshWorker:
    """Invoke the refresh coordinator once or on a fixed interval."""

    def __init__(
        self,
        coordinator: BulkRefreshCoordinator,
        interval_seconds: Optional[float] = None,
    ) -> None:
        self._coordinator = coordinator
        self._interval = interval_seconds

    async def run_once(self) -> Optional[RefreshReport]:
        try:
            report = await self._coordinator.run()
        except TokenStoreError as exc:
            logger.error("Could not enumerate merchants: %s", exc)
            return None

        for outcome in report.failures:
            logger.warning(
                "Merchant %s needs attention: %s", outcome.tenant_id, outcome.error
            )
        return report

    async def run_forever(self) -> None:
        interval = self._interval or 3600.0
        while True:
            await self.run_once()
            await asyncio.sleep(interval)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refresh stored Salla merchant tokens.")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Repeat every INTERVAL seconds instead of running once.",
    )
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    coordinator = BulkRefreshCoordinator(
        get_token_store(), get_salla_oauth_client(), settings.refresh
    )
    worker = TokenRefreshWorker(coordinator, interval_seconds=args.interval)
    if args.interval:
        await worker.run_forever()
        return EXIT_OK

    report = await worker.run_once()
    return EXIT_OK if report is not None else EXIT_ENUMERATION_FAILED


def run() -> None:
    """Console entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Token refresh worker stopped")


if __name__ == "__main__":  # pragma: no cover - manual execution path
    run()
