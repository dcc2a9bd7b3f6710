"""Schemas for inbound Salla webhooks and the ingress acknowledgement."""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SallaWebhookPayload(BaseModel):
    """Envelope Salla posts for every store and order event."""

    model_config = ConfigDict(extra="ignore")

    event: str = Field("", description="Event discriminator, e.g. order.created.")
    merchant: Optional[Union[int, str]] = Field(
        None, description="Merchant the event belongs to."
    )
    created_at: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _default_data(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("event", mode="before")
    @classmethod
    def _default_event(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def order_id(self) -> Any:
        return self.data.get("id")


class WebhookAck(BaseModel):
    """Acknowledgement returned for every verified webhook."""

    received: bool = True
    event: str
    order_id: Optional[Any] = None
    processed_at: str


__all__ = ["SallaWebhookPayload", "WebhookAck"]
