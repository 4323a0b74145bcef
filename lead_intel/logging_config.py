"""Structured logging setup for crawl runs."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import log_settings

_LOGGING_CONFIGURED = False

# Extra attributes that callers attach via ``logger.info(..., extra={...})``.
STRUCTURED_FIELDS = ("source", "item_url", "step", "company", "lead_id")


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter for structured logs.

    One JSON object per line so crawl runs can be grepped or shipped as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": getattr(record, "service", "lead_intel"),
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def configure_logging(level: Optional[str] = None, as_json: Optional[bool] = None) -> None:
    """
    Configure the root logger once.

    Safe to call multiple times – subsequent calls are no-ops.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    if as_json is None:
        as_json = log_settings.json

    handler = logging.StreamHandler(sys.stderr)
    if as_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel((level or log_settings.level).upper())
    root.handlers.clear()
    root.addHandler(handler)

    _LOGGING_CONFIGURED = True
