"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "SALLA_CLIENT_ID": "test-client-id",
    "SALLA_CLIENT_SECRET": "test-client-secret",
    "SALLA_WEBHOOK_SECRET": "test-webhook-secret",
    "CRON_SECRET": "test-cron-secret",
    "N8N_PAYMENT_WEBHOOK_URL": "https://n8n.example.com/webhook/payment",
    "N8N_CANCELLATION_WEBHOOK_URL": "https://n8n.example.com/webhook/cancel",
    "N8N_LOGGING_WEBHOOK_URL": "https://n8n.example.com/webhook/log",
    "N8N_REFUND_WEBHOOK_URL": "https://n8n.example.com/webhook/refund",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
