"""
FastAPI routes for the Salla token relay.
"""

from __future__ import annotations

import asyncio
import json
import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from salla_relay.api.errors import error_response
from salla_relay.clients.kv_backend import TokenStoreError
from salla_relay.dependencies import (
    SchedulerAuthDependency,
    get_app_settings,
    get_downstream_notifier,
    get_refresh_coordinator,
    get_token_store,
    get_webhook_dispatcher,
)
from salla_relay.schemas import (
    RefreshTokensResponse,
    SallaWebhookPayload,
    StoreCheckResponse,
    WebhookAck,
)
from salla_relay.services.signatures import verify_signature
from salla_relay.services.webhook_events import InvalidWebhookPayloadError, utc_now_iso

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post("/webhook", status_code=HTTPStatus.OK)
async def salla_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    dispatcher: Annotated[Any, Depends(get_webhook_dispatcher)],
    notifier: Annotated[Any, Depends(get_downstream_notifier)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> Any:
    """Verify a Salla webhook, apply it, and acknowledge it.

    Once the signature checks out the response is always 200 so Salla does
    not redeliver because of failures on our side.
    """
    secret = settings.salla.webhook_secret
    signature = request.headers.get(settings.salla.signature_header)
    if not secret or not signature:
        logger.error("Missing secret or signature")
        return error_response(HTTPStatus.UNAUTHORIZED, "Unauthorized")

    body = await request.body()
    if not verify_signature(secret, body, signature):
        logger.error("Invalid signature")
        return error_response(HTTPStatus.UNAUTHORIZED, "Invalid signature")

    try:
        payload = SallaWebhookPayload.model_validate(json.loads(body))
    except (ValueError, ValidationError):
        logger.warning("Verified webhook body is not a JSON object")
        return error_response(HTTPStatus.BAD_REQUEST, "Invalid JSON payload")

    logger.info("Salla webhook: %s | Order: %s", payload.event, payload.order_id)

    try:
        notifications = await asyncio.to_thread(dispatcher.dispatch, payload)
    except InvalidWebhookPayloadError as exc:
        logger.error("Rejected %s payload: %s", payload.event, exc)
        notifications = []
    except TokenStoreError as exc:
        logger.error("Could not persist tokens from %s: %s", payload.event, exc)
        notifications = []
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error processing webhook %s", payload.event)
        notifications = []

    for notification in notifications:
        background_tasks.add_task(notifier.send, notification)

    return WebhookAck(
        event=payload.event,
        order_id=payload.order_id,
        processed_at=utc_now_iso(),
    )


@router.api_route(
    "/webhook",
    methods=["GET", "HEAD", "OPTIONS", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def salla_webhook_wrong_method() -> JSONResponse:
    return error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")


@router.api_route(
    "/refresh-tokens",
    methods=["GET", "POST"],
    status_code=HTTPStatus.OK,
    dependencies=[SchedulerAuthDependency],
    response_model=RefreshTokensResponse,
    response_model_exclude_none=True,
)
async def refresh_tokens(
    coordinator: Annotated[Any, Depends(get_refresh_coordinator)],
) -> Any:
    """Refresh every merchant's tokens; triggered by the scheduler."""
    try:
        report = await coordinator.run()
    except TokenStoreError as exc:
        logger.error("Error refreshing tokens: %s", exc)
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))

    return RefreshTokensResponse.from_report(report)


@router.get(
    "/store/check",
    status_code=HTTPStatus.OK,
    dependencies=[SchedulerAuthDependency],
    response_model=StoreCheckResponse,
)
async def check_token_store(
    store: Annotated[Any, Depends(get_token_store)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> Any:
    """Round-trip a probe document through the configured store."""
    try:
        probe = await asyncio.to_thread(store.probe)
    except TokenStoreError as exc:
        logger.error("Token store check failed: %s", exc)
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))

    return StoreCheckResponse(
        backend=store.backend_name,
        probe=probe,
        tenant_count=probe["tenant_count"],
        env_configured={
            "salla_client": bool(
                settings.salla.client_id and settings.salla.client_secret
            ),
            "webhook_secret": bool(settings.salla.webhook_secret),
            "cron_secret": bool(settings.scheduler.cron_secret),
            "payment_webhook": bool(settings.notifications.payment_webhook_url),
            "cancellation_webhook": bool(
                settings.notifications.cancellation_webhook_url
            ),
        },
    )


__all__ = ["router"]
