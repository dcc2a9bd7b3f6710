"""Pre-flight check for a relay deployment.

Loads ``AppSettings`` from an env file and reports settings that parse but
leave the relay unable to do its job: a DynamoDB backend without a table,
no webhook or scheduler secret, order classes with nowhere to go, or a
per-tenant refresh budget shorter than one Salla round trip. With
``--probe-store`` it also round-trips a document through the configured
token store.

Example::

    python -m scripts.check_env --env-file /opt/relay/.env --strict --probe-store
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from salla_relay.clients.kv_backend import TokenStoreError
from salla_relay.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_STORE_ERROR = 4
EXIT_RUNTIME_ERROR = 5

_NOTIFICATION_URLS = {
    "N8N_PAYMENT_WEBHOOK_URL": "payment_webhook_url",
    "N8N_CANCELLATION_WEBHOOK_URL": "cancellation_webhook_url",
    "N8N_LOGGING_WEBHOOK_URL": "logging_webhook_url",
    "N8N_REFUND_WEBHOOK_URL": "refund_webhook_url",
}


class IncompleteConfigurationError(Exception):
    """Raised when settings load but cannot run the relay."""


def configuration_problems(settings: AppSettings) -> list[str]:
    problems: list[str] = []
    if settings.store.backend == "dynamodb" and not settings.store.dynamodb_table_name:
        problems.append("DYNAMODB_TABLE_NAME is required when TOKEN_STORE_BACKEND=dynamodb")
    if not settings.salla.webhook_secret:
        problems.append("SALLA_WEBHOOK_SECRET is unset; every webhook will be rejected")
    if not settings.scheduler.cron_secret:
        problems.append("CRON_SECRET is unset; the refresh endpoint will reject all callers")
    for env_name, field in _NOTIFICATION_URLS.items():
        if not getattr(settings.notifications, field):
            problems.append(f"{env_name} is unset; those order events will not be forwarded")
    if settings.refresh.tenant_timeout_seconds <= settings.salla.http_timeout_seconds:
        problems.append(
            "REFRESH_TENANT_TIMEOUT should exceed SALLA_HTTP_TIMEOUT so a slow "
            "provider reply is reported as the provider's error"
        )
    return problems


def load_settings(env_file: Path, *, strict: bool) -> AppSettings:
    """Load settings from ``env_file`` and print every problem found."""
    if not env_file.exists():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    _load_env_file(str(env_file))
    settings = AppSettings()  # type: ignore[call-arg]
    problems = configuration_problems(settings)
    for problem in problems:
        print(f"warning: {problem}", file=sys.stderr)
    if strict and problems:
        raise IncompleteConfigurationError("; ".join(problems))
    return settings


def probe_store(settings: AppSettings) -> dict:
    """Round-trip a document through the backend ``settings`` select."""
    # Imported late so a plain settings check never builds store clients.
    from salla_relay.clients import DynamoDBStore, RedisStore, SQLiteStore, build_redis_client
    from salla_relay.services.token_store import TokenStore

    store_settings = settings.store
    if store_settings.backend == "redis":
        backend = RedisStore(build_redis_client(store_settings))
    elif store_settings.backend == "dynamodb":
        backend = DynamoDBStore(store_settings)
    else:
        backend = SQLiteStore(store_settings.db_path)
    return TokenStore(backend, key_prefix=store_settings.key_prefix).probe()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check a relay deployment's settings.")
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as validation errors.",
    )
    parser.add_argument(
        "--probe-store",
        action="store_true",
        help="Also write and read back a document through the token store.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = load_settings(args.env_file, strict=args.strict)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except IncompleteConfigurationError as exc:
        print(f"Settings incomplete: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if args.probe_store:
        try:
            probe = probe_store(settings)
        except (TokenStoreError, ValueError) as exc:
            print(f"Token store check failed: {exc}", file=sys.stderr)
            return EXIT_STORE_ERROR
        if not probe["round_trip"]:
            print("Token store returned a different document than was written.", file=sys.stderr)
            return EXIT_STORE_ERROR
        print(
            f"Token store ({settings.store.backend}) OK, "
            f"{probe['tenant_count']} merchant(s) stored."
        )

    print("Settings OK.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
