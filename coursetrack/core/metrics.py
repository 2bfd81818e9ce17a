"""Prometheus metric inventory.

Every metric the service exports is declared here; the owning modules
import and increment them at the point of action.  HTTP metrics are fed by
MetricsMiddleware, the rest by the progress pipeline.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, route and status code",
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
# Progress pipeline
# ---------------------------------------------------------------------------

LESSON_COMPLETIONS = Counter(
    "lesson_completions_total",
    "complete-lesson calls by outcome",
    ["result"],  # "new" or "repeat"
)

QUIZ_ATTEMPTS = Counter(
    "quiz_attempts_total",
    "Quiz attempt submissions by outcome",
    ["result"],  # "passed", "failed" or "rejected" (attempt limit)
)

ASSIGNMENT_SUBMISSIONS = Counter(
    "assignment_submissions_total",
    "Assignment submissions by kind",
    ["kind"],  # "first" or "resubmission"
)

ACHIEVEMENTS_GRANTED = Counter(
    "achievements_granted_total",
    "Achievements newly granted to users",
    ["code"],
)

NOTIFICATION_FAILURES = Counter(
    "notification_failures_total",
    "Swallowed failures in activity logging and achievement evaluation",
    ["stage"],  # "activity", "achievements", "dispatch", "decode", "dead_letter"
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)

NOTIFICATION_LAG = Histogram(
    "notification_delivery_lag_seconds",
    "Time a queued notification waited before the worker picked it up",
    buckets=[1, 5, 15, 60, 300, 900, 3600],
)

DEAD_LETTERS_REPLAYED = Counter(
    "notification_dead_letters_replayed_total",
    "Dead-lettered notifications moved back onto the notifications queue",
)
