"""MallBoard — Structured JSON Logging.

One JSON object per line on stdout. Context passed through ``extra=`` is
copied into the line when its key is listed in ``EXTRA_FIELDS``.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from mallboard.config import settings

EXTRA_FIELDS = (
    "mall",
    "entity_id",
    "endpoint",
    "status_code",
    "duration_ms",
    "batch_id",
    "data_mode",
)


class JSONFormatter(logging.Formatter):
    """Produces structured JSON log lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        # Japanese item names stay readable; enums and dates fall back to str
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return ``mallboard.<name>`` with the JSON handler attached once."""
    logger = logging.getLogger(f"mallboard.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
