"""Structured JSON logging for SpendWise hosts."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from .settings import get_settings

SERVICE_NAME = "spendwise"
LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(JsonFormatter):
    """Adds a UTC ``timestamp``, the ``level`` name and the ``service`` tag to every record."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str | None = None) -> None:
    """Send one JSON object per line to stdout.

    ``level`` defaults to ``Settings.log_level`` (``LOG_LEVEL`` in the environment).
    """

    root = logging.getLogger()
    root.setLevel((level or get_settings().log_level).upper())
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))
    root.addHandler(handler)
