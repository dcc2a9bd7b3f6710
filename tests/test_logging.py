from __future__ import annotations

import logging

from salla_relay.core.logging import TokenRedactionFilter


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


def test_filter_masks_token_values() -> None:
    record = _record("provider said %s", '{"access_token":"abc123","refresh_token":"def456"}')

    assert TokenRedactionFilter().filter(record) is True

    message = record.getMessage()
    assert "abc123" not in message
    assert "def456" not in message
    assert message.count(TokenRedactionFilter.REDACTED) == 2


def test_filter_leaves_other_messages_untouched() -> None:
    record = _record("Token refreshed for merchant %s", "1001")

    TokenRedactionFilter().filter(record)

    assert record.getMessage() == "Token refreshed for merchant 1001"
    assert record.args == ("1001",)


def test_filter_masks_form_encoded_secrets() -> None:
    record = _record("body=client_secret=s3cr3t&grant_type=refresh_token")

    TokenRedactionFilter().filter(record)

    assert "s3cr3t" not in record.getMessage()
