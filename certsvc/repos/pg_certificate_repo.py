"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import literal_column, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from certsvc.db.engine import translate_store_errors
from certsvc.db.tables import CertificateRow
from certsvc.models.certificate import Certificate

_certificates = CertificateRow.__table__


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, category: str) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.user_id == user_id, CertificateRow.category == category
        )
        with translate_store_errors("get_certificate"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.user_id == user_id)
            .order_by(CertificateRow.issued_at.desc())
        )
        with translate_store_errors("list_certificates"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def list_by_category(self, category: str) -> list[Certificate]:
        stmt = select(CertificateRow).where(CertificateRow.category == category)
        with translate_store_errors("list_certificates_by_category"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def upsert(
        self,
        *,
        user_id: str,
        category: str,
        course_ids: frozenset[str],
        now: int,
    ) -> tuple[Certificate, bool]:
        """Single-statement INSERT … ON CONFLICT DO UPDATE.

        ``xmax = 0`` holds only for a freshly inserted tuple, which tells
        us which branch ran without a second query.
        """
        ids = sorted(course_ids)
        stmt = pg_insert(_certificates).values(
            id=str(uuid4()),
            user_id=user_id,
            category=category,
            issued_at=now,
            updated_at=None,
            is_outdated=False,
            completed_course_ids=ids,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[_certificates.c.user_id, _certificates.c.category],
            set_={
                "completed_course_ids": stmt.excluded.completed_course_ids,
                "is_outdated": False,
                "updated_at": now,
            },
        ).returning(*_certificates.c, literal_column("(xmax = 0)").label("inserted"))
        with translate_store_errors("upsert_certificate"):
            row = (await self._session.execute(stmt)).one()
        return _row_to_certificate(row), bool(row.inserted)

    async def mark_outdated(
        self, certificate_id: str, expected_course_ids: frozenset[str]
    ) -> Certificate | None:
        stmt = (
            update(_certificates)
            .where(_certificates.c.id == certificate_id)
            .where(_certificates.c.is_outdated.is_(False))
            .where(_certificates.c.completed_course_ids == sorted(expected_course_ids))
            .values(is_outdated=True)
            .returning(*_certificates.c)
        )
        with translate_store_errors("mark_certificate_outdated"):
            row = (await self._session.execute(stmt)).one_or_none()
        if row is None:
            return None  # concurrent update won the race
        return _row_to_certificate(row)


def _row_to_certificate(row) -> Certificate:
    return Certificate(
        id=str(row.id),
        user_id=row.user_id,
        category=row.category,
        issued_at=row.issued_at,
        updated_at=row.updated_at,
        is_outdated=row.is_outdated,
        completed_course_ids=frozenset(row.completed_course_ids or ()),
    )
