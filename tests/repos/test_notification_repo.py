from __future__ import annotations

import asyncio

import pytest

from certsvc.models.notification import Notification
from certsvc.repos.notification_repo import InMemoryNotificationRepo


def _add(repo: InMemoryNotificationRepo, user_id: str = "alice", created_at: int = 0):
    n = Notification.new(
        user_id=user_id, title="t", message="m", type="generic", created_at=created_at
    )
    asyncio.run(repo.add(n))
    return n


def test_add_rejects_duplicate_id() -> None:
    repo = InMemoryNotificationRepo()
    n = _add(repo)

    with pytest.raises(ValueError):
        asyncio.run(repo.add(n))


def test_pending_delete_transitions_are_conditional() -> None:
    repo = InMemoryNotificationRepo()
    n = _add(repo)

    assert asyncio.run(repo.clear_pending_delete(n.id)) is None
    assert asyncio.run(repo.mark_pending_delete(n.id, 50)) is not None
    assert asyncio.run(repo.mark_pending_delete(n.id, 99)) is None
    assert asyncio.run(repo.get(n.id)).delete_at == 50
    assert asyncio.run(repo.clear_pending_delete(n.id)) is not None


def test_delete_expired_uses_inclusive_deadline() -> None:
    repo = InMemoryNotificationRepo()
    due = _add(repo)
    later = _add(repo)
    asyncio.run(repo.mark_pending_delete(due.id, 100))
    asyncio.run(repo.mark_pending_delete(later.id, 101))

    assert asyncio.run(repo.delete_expired(100)) == [due.id]
    assert asyncio.run(repo.get(later.id)) is not None


def test_owner_scoping() -> None:
    repo = InMemoryNotificationRepo()
    n = _add(repo, user_id="bob")

    assert asyncio.run(repo.mark_read(n.id, user_id="alice")) is None
    assert asyncio.run(repo.delete(n.id, user_id="alice")) is False
    assert asyncio.run(repo.delete(n.id, user_id="bob")) is True
