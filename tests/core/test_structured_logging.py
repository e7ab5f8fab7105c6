"""JSON log output: what the log pipeline parses must stay parseable."""

from __future__ import annotations

import json
import logging
import sys

from certsvc.core.logging import _JsonFormatter


def _record(msg: str = "test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="certsvc.services",
        level=logging.INFO,
        pathname="x.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record("Hello")))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "certsvc.services"
    assert parsed["message"] == "Hello"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_fields() -> None:
    parsed = json.loads(
        _JsonFormatter().format(
            _record(request_id="abc-123", method="GET", path="/health", duration_ms=12.5)
        )
    )
    assert parsed["request_id"] == "abc-123"
    assert parsed["path"] == "/health"
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_includes_domain_identifiers() -> None:
    parsed = json.loads(
        _JsonFormatter().format(
            _record(category="reading", certificate_id="c-1", notification_id="n-1")
        )
    )
    assert parsed["category"] == "reading"
    assert parsed["certificate_id"] == "c-1"
    assert parsed["notification_id"] == "n-1"


def test_json_formatter_omits_absent_fields() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert "notification_id" not in parsed
    assert "exception" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    parsed = json.loads(_JsonFormatter().format(record))
    assert "ValueError: boom" in parsed["exception"]
