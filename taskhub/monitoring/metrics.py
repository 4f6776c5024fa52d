"""Prometheus metrics for backend calls, identity events and page views"""

import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# Backend call metrics
backend_requests_total = Counter(
    'backend_requests_total',
    'Total number of backend calls',
    ['table', 'operation', 'status']
)

backend_request_duration_seconds = Histogram(
    'backend_request_duration_seconds',
    'Time spent on backend calls',
    ['operation'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Identity metrics
auth_events_total = Counter(
    'auth_events_total',
    'Sign-in, sign-out and guard outcomes',
    ['event']
)

# Page metrics
view_errors_total = Counter(
    'view_errors_total',
    'Errors surfaced to users by page controllers',
    ['view', 'phase']
)

board_move_rollbacks_total = Counter(
    'board_move_rollbacks_total',
    'Kanban moves reverted after a failed update'
)


class MetricsCollector:
    """Thin helper so call sites record metrics with one line"""

    def record_backend_call(self, table: str, operation: str, status: str, duration_seconds: float):
        """Record a backend call"""
        backend_requests_total.labels(
            table=table,
            operation=operation,
            status=status
        ).inc()

        backend_request_duration_seconds.labels(
            operation=operation
        ).observe(duration_seconds)

    def record_auth_event(self, event: str):
        """Record an identity event (login, login_failed, logout, rate_limited, guard_redirect)"""
        auth_events_total.labels(event=event).inc()

    def record_view_error(self, view: str, phase: str):
        """Record an error shown to the user (phase is load or mutate)"""
        view_errors_total.labels(view=view, phase=phase).inc()

    def record_board_rollback(self):
        """Record a reverted kanban move"""
        board_move_rollbacks_total.inc()
        logger.info("Kanban move rolled back after failed update")


# Global metrics collector instance
metrics_collector = MetricsCollector()
