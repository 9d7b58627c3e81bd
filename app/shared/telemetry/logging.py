"""Logging setup for the flows service.

Stdout, one format for every module. Channel credentials (Slack webhook
paths, bearer tokens) are masked by SecretRedactionFilter before a record
is emitted, whatever the calling module passes in.
"""

import logging
import re
import sys

from app.core.config import get_settings

_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(https://hooks\.slack\.com/services/)[^\s\"']+"), r"\1***"),
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+"), r"\1***"),
)


def redact(text: str) -> str:
    """Mask webhook secrets and bearer tokens in text."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Rewrites the rendered message of each record with redact()."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging() -> None:
    """Configure the root logger: DEBUG when settings.debug, otherwise INFO.

    When the root logger already has handlers (uvicorn, pytest) basicConfig
    leaves them in place, so the redaction filter is attached to every root
    handler either way. httpx request lines stay at WARNING; they would
    print full webhook URLs.
    """
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[handler],
    )
    for root_handler in logging.getLogger().handlers:
        if not any(isinstance(f, SecretRedactionFilter) for f in root_handler.filters):
            root_handler.addFilter(SecretRedactionFilter())
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)
