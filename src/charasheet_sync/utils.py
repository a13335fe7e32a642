"""Utility helpers for the character sheet synchronisation service."""
from __future__ import annotations

import logging
import os
import re
from typing import Optional

import structlog

_DIGITS = re.compile(r"\d+")


def configure_logger(level: Optional[str] = None) -> structlog.BoundLogger:
    """Configure and return a structlog logger instance.

    The configuration is idempotent and safe to call multiple times. It
    produces JSON logs that are easy to ingest by log aggregation platforms,
    emitted through the standard library handlers so stdout stays free for
    command output.
    """
    if not structlog.is_configured():
        log_level_name = (level or os.environ.get("CHARASHEET_SYNC_LOG_LEVEL", "INFO")).upper()
        log_level = getattr(logging, log_level_name, logging.INFO)
        logging.basicConfig(level=log_level)
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            cache_logger_on_first_use=True,
        )
    return structlog.get_logger("charasheet_sync")


def extract_digits(value: object) -> Optional[int]:
    """Return the first run of digits in ``value`` as an int.

    Source sheets annotate numbers freely (``"25歳"``, ``"170cm"``), so
    strict parsing would reject most real data. Anything without digits
    maps to ``None`` rather than zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _DIGITS.search(str(value))
    if not match:
        return None
    return int(match.group(0))


def is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
