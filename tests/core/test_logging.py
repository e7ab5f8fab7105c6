from __future__ import annotations

import logging

from certsvc.core.logging import _ContainerFormatter, setup_logging


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_sqlalchemy_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def _record(level: int) -> logging.LogRecord:
    return logging.LogRecord(
        name="certsvc.test",
        level=level,
        pathname="ledger.py",
        lineno=7,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_formatter_excludes_location_for_info() -> None:
    assert "[ledger.py:7]" not in _ContainerFormatter().format(_record(logging.INFO))


def test_formatter_includes_location_for_warning() -> None:
    assert "[ledger.py:7]" in _ContainerFormatter().format(_record(logging.WARNING))
