"""Logging setup: one stdout handler, plain text or JSON lines.

Dispatch log calls attach ``request_id`` and ``endpoint`` through ``extra=``.
The JSON formatter lifts them into top-level keys; the text formatter leaves
them out because the message already names the request.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from antiproxy.core.config import Settings, settings

# Record attributes copied into JSON output when a log call supplies them
STRUCTURED_FIELDS = ("request_id", "endpoint")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def build_formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(config: Settings | None = None) -> None:
    """Route all loggers to stdout at the configured level."""
    config = config or settings
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(config.log_json))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # Per-request access lines duplicate the dispatcher's own request logging
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING if level > logging.DEBUG else level)
