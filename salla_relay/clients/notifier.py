"""Best-effort delivery of derived order events to n8n webhooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """One outbound JSON POST to a downstream receiver."""

    kind: str
    url: str
    payload: Dict[str, Any]


class DownstreamNotifier:
    """POST notifications with a bounded timeout; never raises."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._transport = transport

    async def send(self, notification: Notification) -> bool:
        """Deliver a notification and report whether the receiver accepted it."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(notification.url, json=notification.payload)
        except httpx.HTTPError as exc:
            logger.error(
                "DownstreamNotifyFailure: %s delivery failed: %s",
                notification.kind,
                exc.__class__.__name__,
                extra={"kind": notification.kind},
            )
            return False

        if not response.is_success:
            logger.error(
                "DownstreamNotifyFailure: %s rejected with status %s",
                notification.kind,
                response.status_code,
                extra={"kind": notification.kind},
            )
            return False

        logger.info("n8n notified for %s", notification.kind)
        return True


__all__ = ["DownstreamNotifier", "Notification"]
