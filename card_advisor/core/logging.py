"""
Application logging.

One stdout handler for the whole process. Collaborator credentials (the
bearer token sent to the market-data and portfolio services) are masked
before any record is emitted.
"""

import logging
import re
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_SECRET_PATTERNS = (
    # Authorization: Bearer <token>
    (re.compile(r"(Bearer\s+)([A-Za-z0-9\-\._~+/]+=*)"), r"\1[REDACTED]"),
    # token=..., api_token: ..., api-key=...
    (re.compile(r"(?i)\b(api[_-]?token|api[_-]?key|token)(\s*[:=]\s*)([^\s&,;]+)"), r"\1\2[REDACTED]"),
)


def redact(message: str) -> str:
    for pattern, replacement in _SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class RedactingFilter(logging.Filter):
    """Masks credentials in the rendered message"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


class AdvisorStreamHandler(logging.StreamHandler):
    """Stdout handler installed by setup_logging; replaced on reconfiguration"""

    def __init__(self):
        super().__init__(sys.stdout)
        self.setFormatter(logging.Formatter(LOG_FORMAT))
        self.addFilter(RedactingFilter())


def setup_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging: stdout handler, redaction, quiet httpx.

    Args:
        level: Level name, case-insensitive; unknown names fall back to INFO
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(root.handlers):
        if isinstance(existing, AdvisorStreamHandler):
            root.removeHandler(existing)
    root.addHandler(AdvisorStreamHandler())

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
