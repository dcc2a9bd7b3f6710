"""
Salla OAuth utilities.

Performs the refresh-token exchange against the Salla accounts service.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from salla_relay.core.config import SallaSettings
from salla_relay.models.tokens import TokenGrant

logger = logging.getLogger(__name__)


class OAuthTokenRefreshError(Exception):
    """Raised when a refresh-token exchange does not produce new credentials."""


class RefreshRejectedError(OAuthTokenRefreshError):
    """The provider refused the refresh token or the client credentials.

    Terminal for the current refresh token; the merchant has to re-authorize.
    """

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class RefreshNetworkError(OAuthTokenRefreshError):
    """The exchange could not complete (timeout, transport, malformed body)."""


class SallaOAuthClient:
    """Exchange refresh tokens for rotated credentials."""

    def __init__(
        self,
        settings: SallaSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def token_url(self) -> str:
        return str(self._settings.token_url)

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Refresh the access token using a stored refresh token.

        Salla rotates refresh tokens, so the returned grant always carries the
        refresh token that must replace the stored one.
        """
        payload = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise RefreshNetworkError(
                f"Token endpoint unreachable: {exc.__class__.__name__}: {exc}"
            ) from exc

        if not response.is_success:
            raise RefreshRejectedError(response.text, status_code=response.status_code)

        try:
            return TokenGrant.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RefreshNetworkError(
                "Malformed refresh payload returned from Salla."
            ) from exc


__all__ = [
    "OAuthTokenRefreshError",
    "RefreshNetworkError",
    "RefreshRejectedError",
    "SallaOAuthClient",
]
