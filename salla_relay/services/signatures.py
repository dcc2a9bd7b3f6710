"""Constant-time checks for webhook signatures and scheduler bearer tokens."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def compute_signature(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: Optional[str], body: bytes, signature: Optional[str]) -> bool:
    """Return True when ``signature`` matches the body's HMAC under ``secret``.

    A missing secret always fails.
    """
    if not secret:
        logger.warning("Webhook secret not configured; rejecting webhook")
        return False
    if not signature:
        return False
    expected = compute_signature(secret, body)
    return hmac.compare_digest(
        expected.encode("utf-8"), signature.strip().lower().encode("utf-8")
    )


def verify_bearer(expected_secret: Optional[str], authorization: Optional[str]) -> bool:
    """Check an ``Authorization: Bearer <secret>`` header."""
    if not expected_secret or not authorization:
        return False
    return hmac.compare_digest(
        authorization.encode("utf-8"), f"Bearer {expected_secret}".encode("utf-8")
    )


__all__ = ["compute_signature", "verify_bearer", "verify_signature"]
