"""
Secret-safe logging for content-council.

Implements a redaction pipeline so provider credentials never reach log
output, even when an SDK error message echoes a key back.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterable
from typing import TextIO

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
REDACTED = "[REDACTED]"

# API-key-like tokens: OpenAI/Anthropic/DeepSeek style "sk-..." and Google "AIza..."
API_KEY_PATTERN = re.compile(r"\b(?:sk-[A-Za-z0-9_\-]{8,}|AIza[0-9A-Za-z_\-]{20,})")
BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE)


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Replace known secrets and key-shaped tokens in *text*."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    text = API_KEY_PATTERN.sub(REDACTED, text)
    return BEARER_PATTERN.sub(rf"\g<1>{REDACTED}", text)


class SecretRedactingFilter(logging.Filter):
    """Rewrites every record's message with secrets masked."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        # Longest first so a key containing another key is masked whole
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)
            self._secrets.sort(key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message, self._secrets)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def setup_logging(
    level: int | str = logging.INFO,
    secrets: Iterable[str] = (),
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a redacting stream handler on the ``content_council`` logger.

    Calling it again replaces the previously installed handler.

    Returns:
        The installed handler.
    """
    logger = logging.getLogger("content_council")
    for handler in list(logger.handlers):
        if getattr(handler, "_content_council", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SecretRedactingFilter(secrets))
    handler._content_council = True  # type: ignore[attr-defined]

    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return handler


__all__ = ["REDACTED", "SecretRedactingFilter", "redact", "setup_logging"]
