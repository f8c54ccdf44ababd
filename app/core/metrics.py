"""
Prometheus metrics for the seat and membership flows
"""

import logging
from prometheus_client import Counter, Histogram, REGISTRY

logger = logging.getLogger(__name__)


def _counter(name: str, documentation: str, labelnames):
    # Re-importing the module (tests, reloads) must not register twice
    try:
        return Counter(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labelnames):
    try:
        return Histogram(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _counter(
    "app_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = _histogram(
    "app_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)

SEAT_OPERATIONS = _counter(
    "seat_operations_total",
    "Seat reservation state machine operations",
    ["operation", "outcome"]
)
SEAT_HOLDS_EXPIRED = _counter(
    "seat_holds_expired_total",
    "Seat holds released by the lazy expiry sweep",
    []
)
PAYMENT_TRANSITIONS = _counter(
    "payment_transitions_total",
    "Payment status transitions",
    ["status", "source"]
)
PAYMENT_GATEWAY_ERRORS = _counter(
    "payment_gateway_errors_total",
    "Failed or timed out payment processor calls",
    ["operation"]
)
MEMBERSHIP_TRANSITIONS = _counter(
    "membership_transitions_total",
    "Membership status transitions",
    ["status"]
)


def record_seat_operation(operation: str, outcome: str) -> None:
    SEAT_OPERATIONS.labels(operation=operation, outcome=outcome).inc()


def record_payment_transition(status: str, source: str) -> None:
    PAYMENT_TRANSITIONS.labels(status=status, source=source).inc()


def record_membership_transition(status: str, count: int = 1) -> None:
    if count:
        MEMBERSHIP_TRANSITIONS.labels(status=status).inc(count)
