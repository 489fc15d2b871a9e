from __future__ import annotations

import json
import logging

from delivery_ledger.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_RECORDS = 10


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.records = EXPECTED_RECORDS
    record.start_date = "2024-01-01"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["records"] == EXPECTED_RECORDS
    assert payload["start_date"] == "2024-01-01"
    assert "pathname" not in payload


def test_json_formatter_stringifies_decimals() -> None:
    from decimal import Decimal

    record = _record()
    record.total = Decimal("180.50")

    assert json.loads(JsonFormatter().format(record))["total"] == "180.50"


def test_configure_logging_sets_root_level_and_formatter() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(level="debug", json_logs=True)

        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[-1].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_logger_extra_fields_reach_json_payload() -> None:
    import io

    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    log = logging.getLogger("test.delivery_extra")
    log.addHandler(handler)
    log.propagate = False
    try:
        log.warning("Delivery rejected", extra={"owner_id": "owner-a", "reason": "bad amount"})
    finally:
        log.removeHandler(handler)

    payload = json.loads(stream.getvalue())

    assert payload["message"] == "Delivery rejected"
    assert payload["owner_id"] == "owner-a"
    assert payload["reason"] == "bad amount"
    assert "extra" not in payload
