from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_ok_without_backing_services(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {"database": "not_configured", "redis": "not_configured"},
    }


def test_ready(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_metrics_exposes_domain_counters(client: TestClient) -> None:
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "certificate_upserts_total" in resp.text
    assert "notification_deletion_transitions_total" in resp.text
