"""Application metrics using the Prometheus client library.

This module defines all metrics in one place: a single inventory of
everything the service measures.  Other modules import specific metrics
and increment/observe them at the point of action.

Prometheus PULLS these from GET /metrics.  The worker process keeps its
own registry; sweep counters there describe the periodic job, while the
ones in the API process describe admin-triggered and lazy per-user
sweeps.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Certificate lifecycle
# ---------------------------------------------------------------------------

CERTIFICATE_UPSERTS = Counter(
    "certificate_upserts_total",
    "Successful issue_or_refresh calls by outcome",
    ["outcome"],  # "issued" or "refreshed"
)

CERTIFICATE_REJECTIONS = Counter(
    "certificate_not_eligible_total",
    "issue_or_refresh calls rejected because the category is incomplete",
)

CERTIFICATES_OUTDATED = Counter(
    "certificates_outdated_total",
    "Certificates that transitioned from current to outdated",
)

# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

NOTIFICATIONS_CREATED = Counter(
    "notifications_created_total",
    "Notifications created by type",
    ["type"],
)

DELETION_TRANSITIONS = Counter(
    "notification_deletion_transitions_total",
    "Deferred-deletion transitions by action and result",
    ["action", "result"],  # action: mark|cancel; result: ok|invalid_state|not_found
)

NOTIFICATIONS_SWEPT = Counter(
    "notifications_swept_total",
    "Notifications permanently removed by the deletion sweep",
)

SWEEP_DURATION = Histogram(
    "notification_sweep_duration_seconds",
    "Wall time of a single sweep call",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],  # "course_added"
)
