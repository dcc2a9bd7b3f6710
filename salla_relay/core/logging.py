"""
Logging utilities for the FastAPI application and the refresh worker.

Provides a consistent logging format and keeps OAuth credentials out of log
output.
"""

import logging
import re
import sys

_TOKEN_PATTERN = re.compile(
    r"(?P<key>\"?(?:access_token|refresh_token|client_secret)\"?\s*[:=]\s*\"?)"
    r"(?P<value>[^\"&,\s}]+)"
)


class TokenRedactionFilter(logging.Filter):
    """Mask credential values that end up in formatted log messages."""

    REDACTED = "[REDACTED]"

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _TOKEN_PATTERN.sub(
            lambda match: f"{match.group('key')}{self.REDACTED}", message
        )
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    redaction = TokenRedactionFilter()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, TokenRedactionFilter) for f in handler.filters):
            handler.addFilter(redaction)
    # httpx logs every request line at INFO, including provider URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["TokenRedactionFilter", "configure_logging"]
