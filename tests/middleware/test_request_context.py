from __future__ import annotations

import logging
import uuid

from fastapi.testclient import TestClient

from certsvc.core.logging import (
    RequestContextFilter,
    request_id_var,
    setup_logging,
    user_id_var,
)


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    req_id = client.get("/health").headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "corr-42"})
    assert resp.headers.get("x-request-id") == "corr-42"


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/notifications")  # no token → 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def _blank_record() -> logging.LogRecord:
    return logging.LogRecord("certsvc.test", logging.INFO, "x.py", 1, "hi", (), None)


def test_filter_stamps_request_and_user_ids() -> None:
    rid = request_id_var.set("req-1")
    uid = user_id_var.set("alice")
    try:
        record = _blank_record()
        assert RequestContextFilter().filter(record) is True
    finally:
        user_id_var.reset(uid)
        request_id_var.reset(rid)
    assert record.request_id == "req-1"  # type: ignore[attr-defined]
    assert record.user_id == "alice"  # type: ignore[attr-defined]


def test_filter_leaves_user_id_unset_before_authentication() -> None:
    record = _blank_record()
    RequestContextFilter().filter(record)
    assert record.request_id == "-"  # type: ignore[attr-defined]
    assert not hasattr(record, "user_id")


def test_filter_keeps_explicit_extra_fields() -> None:
    rid = request_id_var.set("req-ctx")
    try:
        record = _blank_record()
        record.request_id = "req-explicit"  # type: ignore[attr-defined]
        RequestContextFilter().filter(record)
    finally:
        request_id_var.reset(rid)
    assert record.request_id == "req-explicit"  # type: ignore[attr-defined]


def test_setup_logging_installs_filter_on_handler() -> None:
    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert any(isinstance(f, RequestContextFilter) for f in handler.filters)
