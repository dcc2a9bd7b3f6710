"""
Classification and dispatch of verified Salla webhook events.

Authorization events persist the merchant's first token pair. Order events are
turned into n8n notifications which the caller delivers after responding.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from salla_relay.clients.notifier import Notification
from salla_relay.core.config import NotificationSettings
from salla_relay.models.tokens import TenantTokenRecord, TokenGrant, now_ms
from salla_relay.schemas.webhook import SallaWebhookPayload
from salla_relay.services.token_store import TokenStore

logger = logging.getLogger(__name__)


class InvalidWebhookPayloadError(ValueError):
    """Raised when a recognized event lacks the fields it needs."""


class WebhookEvent(str, Enum):
    """Event discriminators this relay understands."""

    APP_STORE_AUTHORIZE = "app.store.authorize"
    ORDER_STATUS_UPDATED = "order.status.updated"
    ORDER_CANCELED = "order.canceled"
    ORDER_CREATED = "order.created"
    ORDER_PAYMENT_UPDATED = "order.payment.updated"
    ORDER_REFUNDED = "order.refunded"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def _missing_(cls, value: object) -> "WebhookEvent":
        return cls.UNRECOGNIZED


class OrderStatusClass(str, Enum):
    PAID = "paid"
    CANCELLED = "cancelled"
    OTHER = "other"


class NotificationKind(str, Enum):
    """Downstream event classes, each with its own n8n endpoint."""

    PAYMENT = "payment"
    CANCELLATION = "cancellation"
    ORDER_CREATED = "order_created"
    REFUND = "refund"


_PAID_STATUSES = frozenset({"paid", "completed"})
_CANCELLED_STATUSES = frozenset({"canceled", "cancelled"})


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def normalize_status(data: Dict[str, Any]) -> str:
    status = data.get("status")
    if isinstance(status, dict):
        status = status.get("name")
    return str(status or "").strip().lower()


def classify_order_status(status_name: str) -> OrderStatusClass:
    normalized = status_name.strip().lower()
    if normalized in _PAID_STATUSES:
        return OrderStatusClass.PAID
    if normalized in _CANCELLED_STATUSES:
        return OrderStatusClass.CANCELLED
    return OrderStatusClass.OTHER


def _nested(data: Dict[str, Any], *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def payment_received_payload(data: Dict[str, Any], status: str) -> Dict[str, Any]:
    return {
        "event": "payment_received",
        "order_id": data.get("id"),
        "reference_id": data.get("reference_id"),
        "amount": _nested(data, "amounts", "total"),
        "currency": _nested(data, "amounts", "currency_code"),
        "customer": {
            "name": _nested(data, "customer", "name"),
            "phone": _nested(data, "customer", "mobile"),
            "email": _nested(data, "customer", "email"),
        },
        "status": status,
        "paid_at": _nested(data, "date", "paid") or utc_now_iso(),
    }


def payment_method_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event": "payment_received",
        "order_id": data.get("id"),
        "reference_id": data.get("reference_id"),
        "amount": _nested(data, "amounts", "total"),
        "payment_method": _nested(data, "payment", "method"),
        "paid_at": utc_now_iso(),
    }


def order_cancelled_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event": "order_cancelled",
        "order_id": data.get("id"),
        "reference_id": data.get("reference_id"),
        "cancelled_at": _nested(data, "date", "cancelled") or utc_now_iso(),
        "reason": data.get("cancellation_reason"),
    }


def order_created_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event": "order_created",
        "order_id": data.get("id"),
        "reference_id": data.get("reference_id"),
        "created_at": _nested(data, "date", "created") or utc_now_iso(),
    }


def order_refunded_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event": "order_refunded",
        "order_id": data.get("id"),
        "reference_id": data.get("reference_id"),
        "refund_amount": _nested(data, "refund", "amount"),
        "refunded_at": utc_now_iso(),
    }


def plan_notifications(
    event: WebhookEvent, data: Dict[str, Any]
) -> list[tuple[NotificationKind, Dict[str, Any]]]:
    """Derive the downstream notifications an order event calls for."""
    if event is WebhookEvent.ORDER_STATUS_UPDATED:
        status = normalize_status(data)
        status_class = classify_order_status(status)
        if status_class is OrderStatusClass.PAID:
            logger.info("Payment confirmed for order %s", data.get("id"))
            return [(NotificationKind.PAYMENT, payment_received_payload(data, status))]
        if status_class is OrderStatusClass.CANCELLED:
            logger.info("Order %s cancelled", data.get("id"))
            return [(NotificationKind.CANCELLATION, order_cancelled_payload(data))]
        return []
    if event is WebhookEvent.ORDER_CANCELED:
        return [(NotificationKind.CANCELLATION, order_cancelled_payload(data))]
    if event is WebhookEvent.ORDER_CREATED:
        return [(NotificationKind.ORDER_CREATED, order_created_payload(data))]
    if event is WebhookEvent.ORDER_PAYMENT_UPDATED:
        if _nested(data, "payment", "status") == "paid":
            return [(NotificationKind.PAYMENT, payment_method_payload(data))]
        return []
    if event is WebhookEvent.ORDER_REFUNDED:
        return [(NotificationKind.REFUND, order_refunded_payload(data))]
    return []


def authorization_record(
    payload: SallaWebhookPayload, *, issued_at_ms: int
) -> TenantTokenRecord:
    """Build the token record carried by an ``app.store.authorize`` event."""
    data = payload.data
    tenant_id = payload.merchant if payload.merchant is not None else data.get("merchant")
    if tenant_id is None or str(tenant_id) == "":
        raise InvalidWebhookPayloadError("Authorization event has no merchant id.")

    expires_in = data.get("expires_in")
    if expires_in is None and data.get("expires") is not None:
        # Salla may send an absolute expiry in epoch seconds instead.
        expires_in = max(int(data["expires"]) - issued_at_ms // 1000, 0)

    try:
        grant = TokenGrant(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            expires_in=expires_in,
        )
    except ValidationError as exc:
        raise InvalidWebhookPayloadError(
            f"Authorization event for merchant {tenant_id} is missing token fields."
        ) from exc
    return TenantTokenRecord.issue(str(tenant_id), grant, issued_at_ms=issued_at_ms)


class WebhookDispatcher:
    """Route a verified webhook to token persistence or n8n notifications."""

    def __init__(
        self,
        token_store: TokenStore,
        notification_settings: NotificationSettings,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = token_store
        self._settings = notification_settings
        self._clock = clock

    def _url_for(self, kind: NotificationKind) -> Optional[str]:
        url = {
            NotificationKind.PAYMENT: self._settings.payment_webhook_url,
            NotificationKind.CANCELLATION: self._settings.cancellation_webhook_url,
            NotificationKind.ORDER_CREATED: self._settings.logging_webhook_url,
            NotificationKind.REFUND: self._settings.refund_webhook_url,
        }[kind]
        return str(url) if url else None

    def dispatch(self, payload: SallaWebhookPayload) -> list[Notification]:
        """Apply the event and return the notifications still to be delivered."""
        event = WebhookEvent(payload.event)

        if event is WebhookEvent.APP_STORE_AUTHORIZE:
            record = authorization_record(payload, issued_at_ms=self._clock())
            self._store.set(record.tenant_id, record)
            logger.info("Stored tokens for merchant %s", record.tenant_id)
            return []

        if event is WebhookEvent.UNRECOGNIZED:
            logger.info("Unhandled event: %s", payload.event)
            return []

        notifications: list[Notification] = []
        for kind, body in plan_notifications(event, payload.data):
            url = self._url_for(kind)
            if not url:
                logger.warning(
                    "No downstream URL configured for %s notifications; skipping",
                    kind.value,
                )
                continue
            notifications.append(Notification(kind=kind.value, url=url, payload=body))
        return notifications


__all__ = [
    "InvalidWebhookPayloadError",
    "NotificationKind",
    "OrderStatusClass",
    "WebhookDispatcher",
    "WebhookEvent",
    "authorization_record",
    "classify_order_status",
    "plan_notifications",
    "utc_now_iso",
]
