"""Prometheus middleware tests.

The default registry is global and counters never reset, so every test
asserts on the delta between a before and an after reading.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import auth


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_endpoint_label_uses_route_template(client: TestClient) -> None:
    labels = {
        "method": "GET",
        "endpoint": "/v1/categories/{category}/snapshot",
        "status_code": "200",
    }
    before = _get_sample("http_requests_total", labels)
    client.get("/v1/categories/reading/snapshot", headers=auth())
    assert _get_sample("http_requests_total", labels) - before == 1


def test_unmatched_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "unmatched", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/no/such/route")
    assert _get_sample("http_requests_total", labels) - before == 1


def test_metrics_endpoint_not_self_counted(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_domain_errors_are_counted_with_status(client: TestClient) -> None:
    labels = {
        "method": "POST",
        "endpoint": "/v1/certificates/{category}",
        "status_code": "409",
    }
    before = _get_sample("http_requests_total", labels)
    client.post("/v1/certificates/question", headers=auth())
    assert _get_sample("http_requests_total", labels) - before == 1
