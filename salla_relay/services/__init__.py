"""Service layer exports."""

from .signatures import compute_signature, verify_bearer, verify_signature
from .token_refresh import BulkRefreshCoordinator
from .token_store import TokenStore
from .webhook_events import (
    InvalidWebhookPayloadError,
    WebhookDispatcher,
    WebhookEvent,
)

__all__ = [
    "BulkRefreshCoordinator",
    "InvalidWebhookPayloadError",
    "TokenStore",
    "WebhookDispatcher",
    "WebhookEvent",
    "compute_signature",
    "verify_bearer",
    "verify_signature",
]
