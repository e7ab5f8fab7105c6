from __future__ import annotations

import dataclasses
import threading
from typing import Protocol

from certsvc.models.certificate import Certificate


class CertificateRepo(Protocol):
    async def get(self, user_id: str, category: str) -> Certificate | None: ...
    async def list_by_user(self, user_id: str) -> list[Certificate]: ...
    async def list_by_category(self, category: str) -> list[Certificate]: ...
    async def upsert(
        self,
        *,
        user_id: str,
        category: str,
        course_ids: frozenset[str],
        now: int,
    ) -> tuple[Certificate, bool]: ...
    async def mark_outdated(
        self, certificate_id: str, expected_course_ids: frozenset[str]
    ) -> Certificate | None: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_key: dict[tuple[str, str], Certificate] = {}

    async def get(self, user_id: str, category: str) -> Certificate | None:
        with self._lock:
            return self._by_key.get((user_id, category))

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        with self._lock:
            certs = [c for (uid, _), c in self._by_key.items() if uid == user_id]
        return sorted(certs, key=lambda c: c.issued_at, reverse=True)

    async def list_by_category(self, category: str) -> list[Certificate]:
        with self._lock:
            return [c for (_, cat), c in self._by_key.items() if cat == category]

    async def upsert(
        self,
        *,
        user_id: str,
        category: str,
        course_ids: frozenset[str],
        now: int,
    ) -> tuple[Certificate, bool]:
        """Insert a fresh certificate or overwrite the course set of the existing one.

        Returns (certificate, created).  The course set and the outdated
        flag are replaced together, never merged.
        """
        key = (user_id, category)
        with self._lock:
            existing = self._by_key.get(key)
            if existing is None:
                cert = Certificate.new(
                    user_id=user_id,
                    category=category,
                    issued_at=now,
                    completed_course_ids=frozenset(course_ids),
                )
                self._by_key[key] = cert
                return cert, True

            updated = dataclasses.replace(
                existing,
                completed_course_ids=frozenset(course_ids),
                is_outdated=False,
                updated_at=now,
            )
            self._by_key[key] = updated
            return updated, False

    async def mark_outdated(
        self, certificate_id: str, expected_course_ids: frozenset[str]
    ) -> Certificate | None:
        """Flip is_outdated only if the record is still current with the same course set.

        Returns the updated record, or None when a concurrent write got
        there first (already outdated, refreshed, or gone).
        """
        with self._lock:
            for key, cert in self._by_key.items():
                if cert.id != certificate_id:
                    continue
                if cert.is_outdated or cert.completed_course_ids != expected_course_ids:
                    return None
                updated = dataclasses.replace(cert, is_outdated=True)
                self._by_key[key] = updated
                return updated
        return None
