"""Structured Logging — JSON formatter and setup for client observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (entity_kind, operation, status_code, ...) surfaced when present
    - JSON format by default, human-readable text on request
    - setup_logging is idempotent: it replaces its own handler, never stacks them

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "entity_kind", "operation", "status_code", "error_code",
    "record_id", "generation", "sequence", "state",
)

_HANDLER_NAME = "savings_client"


class JSONFormatter(logging.Formatter):
    """Format logs as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the savings_client logger tree."""
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logger = logging.getLogger("savings_client")
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("httpx").setLevel(logging.WARNING)
