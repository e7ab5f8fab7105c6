from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import FakeClock, auth, complete_courses, seed_category


def test_issue_when_incomplete_is_409(client: TestClient) -> None:
    seed_category("reading", ["r1", "r2"])
    complete_courses("alice", ["r1"])

    resp = client.post("/v1/certificates/reading", headers=auth("alice"))

    assert resp.status_code == 409
    assert resp.json()["error"] == "not_eligible"


def test_issue_and_fetch(client: TestClient, clock: FakeClock) -> None:
    seed_category("reading", ["r2", "r1"])
    complete_courses("alice", ["r1", "r2"])

    resp = client.post("/v1/certificates/reading", headers=auth("alice"))

    assert resp.status_code == 200
    cert = resp.json()
    assert cert["issued_at"] == clock.now
    assert cert["updated_at"] is None
    assert cert["completed_course_ids"] == ["r1", "r2"]

    fetched = client.get("/v1/certificates/reading", headers=auth("alice"))
    assert fetched.json()["id"] == cert["id"]
    listed = client.get("/v1/certificates", headers=auth("alice"))
    assert [c["id"] for c in listed.json()] == [cert["id"]]


def test_certificates_are_per_user(client: TestClient) -> None:
    seed_category("reading", ["r1"])
    complete_courses("alice", ["r1"])
    client.post("/v1/certificates/reading", headers=auth("alice"))

    assert client.get("/v1/certificates/reading", headers=auth("bob")).status_code == 404
    assert client.get("/v1/certificates", headers=auth("bob")).json() == []


def test_unknown_category_is_404(client: TestClient) -> None:
    resp = client.post("/v1/certificates/painting", headers=auth())
    assert resp.status_code == 404
