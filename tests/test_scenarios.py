"""End-to-end flows through the HTTP surface, one learner at a time."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from certsvc import worker
from certsvc.models.notification import DELETION_GRACE_SECONDS
from certsvc.services.task_queue import COURSE_ADDED_QUEUE
from tests.conftest import FakeClock, auth, complete_courses, seed_category

COURSE_SVC = auth("course-svc", ["instructor"])


def test_certificate_lifecycle(client: TestClient, clock: FakeClock) -> None:
    alice = auth("alice")
    seed_category("writing", ["w1", "w2"])
    complete_courses("alice", ["w1", "w2"])

    issued = client.post("/v1/certificates/writing", headers=alice).json()
    notes = client.get("/v1/notifications", headers=alice).json()
    assert [n["type"] for n in notes] == ["certificate_issued"]

    # The course-creation service adds a course and fires the hook.
    clock.advance(60)
    seed_category("writing", ["w3"])
    resp = client.post(
        "/v1/hooks/categories/writing/course-added", json={"course_id": "w3"}, headers=COURSE_SVC
    )
    assert resp.status_code == 202
    assert asyncio.run(worker.process_next(COURSE_ADDED_QUEUE)) is True

    cert = client.get("/v1/certificates/writing", headers=alice).json()
    assert cert["is_outdated"] is True
    notes = client.get("/v1/notifications", headers=alice).json()
    by_type = {n["type"]: n for n in notes}
    assert by_type["certificate_updated"]["related_data"]["course_ids"] == ["w3"]
    assert by_type["course_added"]["related_data"]["course_id"] == "w3"

    snap = client.get("/v1/categories/writing/snapshot", headers=alice).json()
    assert snap["progress_percent"] == 67

    complete_courses("alice", ["w3"])
    clock.advance(60)
    refreshed = client.post("/v1/certificates/writing", headers=alice).json()
    assert refreshed["id"] == issued["id"]
    assert refreshed["is_outdated"] is False
    assert refreshed["updated_at"] == clock.now
    assert len(client.get("/v1/notifications", headers=alice).json()) == 3


def test_notification_deletion_lifecycle(client: TestClient, clock: FakeClock) -> None:
    alice = auth("alice")
    seed_category("question", ["q1"])
    complete_courses("alice", ["q1"])
    client.post("/v1/certificates/question", headers=alice)
    (note,) = client.get("/v1/notifications", headers=alice).json()
    path = f"/v1/notifications/{note['id']}/delete-request"

    assert client.get("/v1/notifications/unread-count", headers=alice).json()["count"] == 1
    client.post(f"/v1/notifications/{note['id']}/read", headers=alice)

    # Request, change of mind, request again.
    client.post(path, headers=alice)
    clock.advance(30 * 60)
    restored = client.delete(path, headers=alice).json()
    assert restored["read"] is True
    client.post(path, headers=alice)

    clock.advance(DELETION_GRACE_SECONDS)
    assert client.get("/v1/notifications", headers=alice).json() == []
    assert client.delete(path, headers=alice).status_code == 410
