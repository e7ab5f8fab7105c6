"""Certificate issuance, refresh and outdated detection.

A certificate records the exact course set of its category at the moment
it was issued (or last refreshed).  When the category grows, the stored
set is no longer a superset of the current one and the certificate is
"outdated" until the learner finishes the new courses and refreshes it.

Refresh writes a full recomputation, so two concurrent refreshes resolve
last-writer-wins.  A course added while a refresh is in flight can be
flagged by check_outdated and then overwritten by the refresh's upsert;
the refresh therefore re-reads the category after writing and flags the
certificate itself when the set it stored is already stale.
"""

from __future__ import annotations

import logging

from certsvc.core.clock import Clock, utc_now
from certsvc.core.errors import NotEligible
from certsvc.core.metrics import (
    CERTIFICATE_REJECTIONS,
    CERTIFICATE_UPSERTS,
    CERTIFICATES_OUTDATED,
)
from certsvc.models.certificate import Certificate
from certsvc.models.course import category_title
from certsvc.repos.certificate_repo import CertificateRepo
from certsvc.services.completion_tracker import CompletionTracker
from certsvc.services.notification_ledger import NotificationLedger

logger = logging.getLogger(__name__)

# Bound on compare-and-set retries in check_outdated.  Each retry means a
# concurrent writer changed the record, so contention this deep is a bug.
_MAX_OUTDATED_ATTEMPTS = 5


class CertificateLedger:
    def __init__(
        self,
        tracker: CompletionTracker,
        repo: CertificateRepo,
        notifications: NotificationLedger,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._tracker = tracker
        self._repo = repo
        self._notifications = notifications
        self._clock = clock

    async def issue_or_refresh(self, user_id: str, category: str) -> Certificate:
        snapshot, course_ids = await self._tracker.evaluate(user_id, category)
        if not snapshot.is_all_completed:
            CERTIFICATE_REJECTIONS.inc()
            logger.warning(
                "Certificate rejected user=%s category=%s", user_id, category,
                extra={"category": category},
            )
            raise NotEligible(
                f"category {category} not complete: "
                f"{snapshot.completed_courses}/{snapshot.total_courses} courses, "
                f"{snapshot.completed_writings}/{snapshot.total_courses} writings"
            )

        cert, created = await self._repo.upsert(
            user_id=user_id,
            category=category,
            course_ids=course_ids,
            now=self._clock(),
        )

        if created:
            CERTIFICATE_UPSERTS.labels(outcome="issued").inc()
            logger.info(
                "Certificate issued id=%s user=%s category=%s",
                cert.id, user_id, category,
                extra={"certificate_id": cert.id, "category": category},
            )
            title = category_title(category)
            await self._notifications.create(
                user_id=user_id,
                title="Certificate issued",
                message=f"Congratulations! You earned the {title} certificate.",
                type="certificate_issued",
                related_data={"category": category},
            )
        else:
            CERTIFICATE_UPSERTS.labels(outcome="refreshed").inc()
            logger.info(
                "Certificate refreshed id=%s user=%s category=%s courses=%d",
                cert.id, user_id, category, len(course_ids),
                extra={"certificate_id": cert.id, "category": category},
            )

        # Courses added since evaluate() read the category.
        current = await self._tracker.course_ids(category)
        if not cert.covers(current):
            outdated, _ = await self._detect_outdated(user_id, category, current)
            if outdated:
                cert = await self._repo.get(user_id, category) or cert
        return cert

    async def check_outdated(self, user_id: str, category: str) -> bool:
        """True when the category has courses the certificate was not issued against.

        Only the caller that actually flips the flag notifies the learner.
        """
        current = await self._tracker.course_ids(category)
        outdated, _ = await self._detect_outdated(user_id, category, current)
        return outdated

    async def check_outdated_for_category(
        self, category: str, course_id: str | None = None
    ) -> int:
        """Run check_outdated for every holder of a category certificate.

        With course_id, each holder whose certificate flips is also told
        which course was added.  Returns how many certificates this call
        moved to outdated.
        """
        current = await self._tracker.course_ids(category)
        course_title: str | None = None
        if course_id:
            course_title = await self._tracker.course_title(course_id)
        transitioned = 0
        for cert in await self._repo.list_by_category(category):
            _, flipped = await self._detect_outdated(cert.user_id, category, current)
            if not flipped:
                continue
            transitioned += 1
            if course_title is not None:
                await self._notify_course_added(
                    cert.user_id, category, course_id, course_title
                )
        logger.info(
            "Outdated fan-out category=%s course=%s transitioned=%d",
            category, course_id, transitioned,
            extra={"category": category},
        )
        return transitioned

    async def get_certificate(self, user_id: str, category: str) -> Certificate | None:
        self._tracker.require_known(category)
        return await self._repo.get(user_id, category)

    async def list_certificates(self, user_id: str) -> list[Certificate]:
        return await self._repo.list_by_user(user_id)

    async def _detect_outdated(
        self, user_id: str, category: str, current: frozenset[str]
    ) -> tuple[bool, bool]:
        """Returns (is_outdated, flipped_by_this_call)."""
        for _ in range(_MAX_OUTDATED_ATTEMPTS):
            cert = await self._repo.get(user_id, category)
            if cert is None or cert.covers(current):
                return False, False
            if cert.is_outdated:
                return True, False

            flipped = await self._repo.mark_outdated(cert.id, cert.completed_course_ids)
            if flipped is None:
                # Refreshed or flagged concurrently; look again.
                continue

            await self._notify_outdated(flipped, cert.missing_courses(current))
            return True, True

        logger.warning(
            "check_outdated gave up after %d attempts user=%s category=%s",
            _MAX_OUTDATED_ATTEMPTS, user_id, category,
        )
        cert = await self._repo.get(user_id, category)
        return cert is not None and cert.is_outdated, False

    async def _notify_outdated(self, cert: Certificate, new_courses: frozenset[str]) -> None:
        CERTIFICATES_OUTDATED.inc()
        logger.info(
            "Certificate outdated id=%s user=%s category=%s new_courses=%d",
            cert.id, cert.user_id, cert.category, len(new_courses),
            extra={"certificate_id": cert.id, "category": cert.category},
        )
        title = category_title(cert.category)
        await self._notifications.create(
            user_id=cert.user_id,
            title="New course added",
            message=(
                f"New courses were added to {title}. "
                "Complete them to update your certificate."
            ),
            type="certificate_updated",
            related_data={
                "category": cert.category,
                "course_ids": sorted(new_courses),
            },
        )

    async def _notify_course_added(
        self, user_id: str, category: str, course_id: str, course_title: str
    ) -> None:
        await self._notifications.create(
            user_id=user_id,
            title="New course available",
            message=f"{course_title} was added to {category_title(category)}.",
            type="course_added",
            related_data={
                "category": category,
                "course_id": course_id,
                "course_title": course_title,
            },
        )
