from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from certsvc.api.dependencies import get_clock
from certsvc.main import app
from certsvc.services import token_service
from certsvc.services.container import (
    Services,
    build_services,
    certificate_repo,
    notification_repo,
    progress_source,
)
from certsvc.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import certsvc` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

T0 = 1_700_000_000


class FakeClock:
    """Injectable clock: integer UNIX seconds that only move when told to."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_progress_source() -> None:
    progress_source.clear()


@pytest.fixture(autouse=True)
def reset_certificates() -> None:
    certificate_repo._by_key.clear()


@pytest.fixture(autouse=True)
def reset_notifications() -> None:
    notification_repo._by_id.clear()


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def clock() -> Iterator[FakeClock]:
    """Frozen clock shared by the HTTP app and directly-built services."""
    fake = FakeClock()
    app.dependency_overrides[get_clock] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def services(clock: FakeClock) -> Services:
    """Services over the same in-memory singletons the app uses."""
    return build_services(
        progress_source, certificate_repo, notification_repo, clock=clock
    )


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(username: str = "test-user", roles: list[str] | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(username, roles)}"}


@pytest.fixture
def token() -> str:
    """Token with default role (user)."""
    return mint_token()


@pytest.fixture
def admin_token() -> str:
    """Token with admin role."""
    return mint_token(username="test-admin", roles=["admin"])


# ---------------------------------------------------------------------------
# Catalog helpers (play the progress collaborator)
# ---------------------------------------------------------------------------


def seed_category(category: str, course_ids: list[str]) -> None:
    for cid in course_ids:
        progress_source.add_course(cid, category, title=f"Course {cid}")


def complete_courses(user_id: str, course_ids: list[str], *, writings: bool = True) -> None:
    for cid in course_ids:
        progress_source.record_course_completion(user_id, cid)
        if writings:
            progress_source.record_writing(user_id, cid)
