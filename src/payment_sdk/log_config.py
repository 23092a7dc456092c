"""Logging setup for applications embedding the payment SDK.

The SDK itself only ever calls ``logging.getLogger(__name__)``; nothing is
configured on import.  :func:`configure_logging` is opt-in (the CLI calls
it for ``--log-dir``) and installs a size-rotated log file.

Every handler it touches gets a :class:`ScrubFilter`, so a bearer header
or an ``api_key=...`` pair that ends up in a message is written as
``***REDACTED***``.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_DEFAULT_LOG_DIR = os.path.join(str(Path.home()), ".payment-sdk", "logs")
_LOG_FILE_NAME = "payment-sdk.log"
_MAX_BYTES = 5_000_000
_BACKUP_COUNT = 3
_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_REDACTED = "***REDACTED***"

# Field names whose values never reach a log file.
_SENSITIVE_FIELDS = ("api_?key", "token", "password", "secret")


def _field_pattern(name: str) -> re.Pattern[str]:
    # Matches name=value, name: value, "name": "value" and 'name': 'value'.
    return re.compile(
        rf'({name}["\x27]?\s*[:=]\s*["\x27]?)([^"\x27\s,}}{{\]]+)',
        re.IGNORECASE,
    )


_SCRUB_PATTERNS: list[re.Pattern[str]] = [_field_pattern(f) for f in _SENSITIVE_FIELDS] + [
    re.compile(r'(Authorization["\x27]?\s*:\s*["\x27]?Bearer\s+)([^"\x27\s,}]+)', re.IGNORECASE),
]


def _scrub(text: str) -> str:
    for pattern in _SCRUB_PATTERNS:
        text = pattern.sub(rf"\1{_REDACTED}", text)
    return text


class ScrubFilter(logging.Filter):
    """Redact credentials from a record before any handler formats it.

    String arguments are scrubbed individually, so ``%``-style lazy
    formatting still works after filtering.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _scrub(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(_scrub(a) if isinstance(a, str) else a for a in record.args)
        return True


def _has_scrubber(handler: logging.Handler) -> bool:
    return any(isinstance(f, ScrubFilter) for f in handler.filters)


def configure_logging(
    log_dir: Optional[str] = None,
    *,
    level: Optional[str] = None,
) -> str:
    """Send SDK logs to a rotating file and scrub every root handler.

    Calling it again is harmless: the file handler is added once.

    :param log_dir: Directory for the log file.  Falls back to
        ``PAYMENT_SDK_LOG_DIR``, then ``~/.payment-sdk/logs/``.
    :param level: Level name.  Falls back to ``PAYMENT_SDK_LOG_LEVEL``,
        then ``INFO``.  Unknown names mean ``INFO``.
    :returns: Path of the active log file.
    """
    log_dir = log_dir or os.environ.get("PAYMENT_SDK_LOG_DIR") or _DEFAULT_LOG_DIR
    level_name = (level or os.environ.get("PAYMENT_SDK_LOG_LEVEL") or "INFO").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, _LOG_FILE_NAME)

    root = logging.getLogger()
    root.setLevel(log_level)

    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        handler = RotatingFileHandler(log_path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)

    scrubber = ScrubFilter()
    for handler in root.handlers:
        if not _has_scrubber(handler):
            handler.addFilter(scrubber)

    return log_path
