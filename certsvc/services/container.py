"""Service wiring: picks PostgreSQL or in-memory repositories.

Mirrors the engine.py/redis.py pattern.  With DATABASE_URL set, every
scope opens one session (one transaction) and builds the Pg repos on
it, so a certificate and the notification it emits commit together.
Without it, the module-level in-memory singletons below are shared by
the API, the worker loop and the tests.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from certsvc.core.clock import Clock, utc_now
from certsvc.db import engine as db_engine
from certsvc.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from certsvc.repos.notification_repo import InMemoryNotificationRepo, NotificationRepo
from certsvc.repos.pg_certificate_repo import PgCertificateRepo
from certsvc.repos.pg_notification_repo import PgNotificationRepo
from certsvc.repos.pg_progress_repo import PgProgressSource
from certsvc.repos.progress_repo import InMemoryProgressSource, ProgressSource
from certsvc.services.certificate_ledger import CertificateLedger
from certsvc.services.completion_tracker import CompletionTracker
from certsvc.services.deletion_scheduler import DeletionScheduler
from certsvc.services.notification_ledger import NotificationLedger

logger = logging.getLogger(__name__)

# In-memory singletons (used when DATABASE_URL is unset).
progress_source = InMemoryProgressSource()
certificate_repo = InMemoryCertificateRepo()
notification_repo = InMemoryNotificationRepo()


@dataclass(frozen=True, slots=True)
class Services:
    tracker: CompletionTracker
    certificates: CertificateLedger
    notifications: NotificationLedger
    scheduler: DeletionScheduler


def build_services(
    progress: ProgressSource,
    certificates: CertificateRepo,
    notifications: NotificationRepo,
    *,
    clock: Clock = utc_now,
) -> Services:
    tracker = CompletionTracker(progress)
    notification_ledger = NotificationLedger(notifications, clock=clock)
    return Services(
        tracker=tracker,
        certificates=CertificateLedger(
            tracker, certificates, notification_ledger, clock=clock
        ),
        notifications=notification_ledger,
        scheduler=DeletionScheduler(notifications, clock=clock),
    )


@asynccontextmanager
async def service_scope(*, clock: Clock = utc_now) -> AsyncGenerator[Services, None]:
    """Services for one request or one worker job."""
    if db_engine.async_session_factory is None:
        yield build_services(
            progress_source, certificate_repo, notification_repo, clock=clock
        )
        return

    async with db_engine.session_scope() as session:
        yield build_services(
            PgProgressSource(session),
            PgCertificateRepo(session),
            PgNotificationRepo(session),
            clock=clock,
        )


def seed_sample_catalog() -> None:
    """Populate the in-memory progress source with a few courses per category.

    Dev convenience only; with a database the collaborator's tables are
    the source of truth.
    """
    samples = {
        "reading": ["Why read?", "Reading slowly", "Reading critically"],
        "writing": ["Why write?", "Your first essay"],
        "question": ["Asking better questions", "Socratic dialogue"],
    }
    for category, titles in samples.items():
        for i, title in enumerate(titles, start=1):
            progress_source.add_course(f"{category}-{i}", category, title)
    logger.info(
        "Seeded in-memory catalog with %d courses",
        sum(len(t) for t in samples.values()),
    )
