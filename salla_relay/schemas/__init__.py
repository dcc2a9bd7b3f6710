"""Public schema exports."""

from .refresh import RefreshResult, RefreshTokensResponse, StoreCheckResponse
from .webhook import SallaWebhookPayload, WebhookAck

__all__ = [
    "RefreshResult",
    "RefreshTokensResponse",
    "SallaWebhookPayload",
    "StoreCheckResponse",
    "WebhookAck",
]
