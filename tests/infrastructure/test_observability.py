"""Structured Logging — JSON lines with known extra fields."""

import json
import logging

from savings_client.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "savings_client.test", logging.WARNING, __file__, 1, "GET /cuentas → %s",
        (500,), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_core_and_extra_fields():
    line = JSONFormatter().format(_record(entity_kind="accounts", status_code=500))
    log = json.loads(line)
    assert log["level"] == "WARNING"
    assert log["logger"] == "savings_client.test"
    assert log["message"] == "GET /cuentas → 500"
    assert log["entity_kind"] == "accounts"
    assert log["status_code"] == 500
    assert "timestamp" in log


def test_json_formatter_skips_unknown_and_missing_extras():
    log = json.loads(JSONFormatter().format(_record(password="secret")))
    assert "password" not in log
    assert "operation" not in log


def test_setup_logging_is_idempotent():
    logger = logging.getLogger("savings_client")
    before = list(logger.handlers)
    try:
        setup_logging("DEBUG", "json")
        setup_logging("INFO", "text")
        added = [h for h in logger.handlers if h not in before]
        assert len(added) == 1
        assert logger.level == logging.INFO
        assert not isinstance(added[0].formatter, JSONFormatter)
    finally:
        for handler in list(logger.handlers):
            if handler not in before:
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
