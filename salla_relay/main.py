"""
FastAPI application entrypoint for the Salla token relay.
"""

from __future__ import annotations

from fastapi import FastAPI

from salla_relay.api.errors import register_exception_handlers
from salla_relay.api.routes import router as api_router
from salla_relay.core.config import get_settings
from salla_relay.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Salla Token Relay",
        version="0.1.0",
        description=(
            "Relays Salla order webhooks to n8n and keeps merchant OAuth tokens fresh."
        ),
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
