import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SERVICE = "pages-version"

# Attributes every LogRecord carries; anything else arrived via extra=
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, so CloudWatch Insights can filter on
    request_id, status_code and friends without regexes.

    Keys passed through ``extra=`` land at the top level of the object;
    an ``extra={"fields": {...}}`` dict is flattened the same way.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "service": SERVICE,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_extra_fields(record))

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _RESERVED or key.startswith("_"):
            continue
        if key == "fields" and isinstance(value, dict):
            fields.update(value)
        else:
            fields[key] = value
    return fields


def get_logger(name: str = "app") -> logging.Logger:
    """JSON logger for one handler or helper module; configured on first use."""
    logger = logging.getLogger(f"{SERVICE}.{name}")

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    # Lambda's runtime attaches its own handler to the root logger
    logger.propagate = False

    return logger


_event_logger = get_logger("events")


def log(message: str, **fields: Any) -> None:
    """
    Info-level one-liner for handlers that do not keep a logger around:

        log("health.check", path="/healthz", method="GET")
    """
    _event_logger.info(message, extra={"fields": fields} if fields else None)
