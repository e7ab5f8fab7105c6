from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from certsvc.services.task_queue import COURSE_ADDED_QUEUE, task_queue
from tests.conftest import auth, complete_courses, seed_category

INSTRUCTOR = ["instructor"]


def _certify(client: TestClient, user_id: str, category: str = "reading") -> None:
    resp = client.post(f"/v1/certificates/{category}", headers=auth(user_id))
    assert resp.status_code == 200


def test_check_outdated_requires_collaborator_role(client: TestClient) -> None:
    resp = client.post(
        "/v1/hooks/categories/reading/check-outdated",
        json={"user_id": "alice"},
        headers=auth("alice"),
    )
    assert resp.status_code == 403


def test_check_outdated_flags_and_notifies(client: TestClient) -> None:
    seed_category("reading", ["r1"])
    complete_courses("alice", ["r1"])
    _certify(client, "alice")
    seed_category("reading", ["r2"])

    resp = client.post(
        "/v1/hooks/categories/reading/check-outdated",
        json={"user_id": "alice"},
        headers=auth("course-svc", INSTRUCTOR),
    )

    assert resp.status_code == 200
    assert resp.json() == {"user_id": "alice", "category": "reading", "is_outdated": True}
    cert = client.get("/v1/certificates/reading", headers=auth("alice")).json()
    assert cert["is_outdated"] is True
    types = [n["type"] for n in client.get("/v1/notifications", headers=auth("alice")).json()]
    assert types.count("certificate_updated") == 1


def test_check_outdated_without_certificate(client: TestClient) -> None:
    seed_category("reading", ["r1"])
    resp = client.post(
        "/v1/hooks/categories/reading/check-outdated",
        json={"user_id": "nobody"},
        headers=auth("admin", ["admin"]),
    )
    assert resp.json()["is_outdated"] is False


def test_course_added_enqueues_task(client: TestClient) -> None:
    resp = client.post(
        "/v1/hooks/categories/writing/course-added",
        json={"course_id": "w9"},
        headers=auth("course-svc", INSTRUCTOR),
    )

    assert resp.status_code == 202
    assert resp.json()["queue"] == COURSE_ADDED_QUEUE
    task = asyncio.run(task_queue.dequeue(COURSE_ADDED_QUEUE))
    assert task is not None
    assert task.payload == {"category": "writing", "course_id": "w9"}


def test_course_added_unknown_category_not_enqueued(client: TestClient) -> None:
    resp = client.post(
        "/v1/hooks/categories/painting/course-added",
        json={},
        headers=auth("course-svc", INSTRUCTOR),
    )

    assert resp.status_code == 404
    assert asyncio.run(task_queue.queue_length(COURSE_ADDED_QUEUE)) == 0
