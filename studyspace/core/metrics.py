"""
Monitoring and metrics for the reservation core
"""

import time
import logging
from contextlib import asynccontextmanager
from prometheus_client import Counter, Histogram, REGISTRY

logger = logging.getLogger(__name__)


def _counter(name: str, documentation: str, labels=()):
    # Re-importing the module (test reloads) must not re-register collectors
    try:
        return Counter(name, documentation, list(labels))
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labels=()):
    try:
        return Histogram(name, documentation, list(labels))
    except ValueError:
        return REGISTRY._names_to_collectors[name]


AVAILABILITY_DECISIONS = _counter(
    "studyspace_availability_decisions",
    "Availability decisions by flow and outcome",
    ["flow", "outcome"]
)
RESERVATION_TRANSITIONS = _counter(
    "studyspace_reservation_transitions",
    "Reservation status transitions",
    ["to_status"]
)
TIMED_OUT_RESERVATIONS = _counter(
    "studyspace_reservations_timed_out",
    "Pending reservations demoted by the timeout job"
)
OPERATION_FAILURES = _counter(
    "studyspace_operation_failures",
    "Failed core operations",
    ["operation", "error"]
)
OPERATION_DURATION = _histogram(
    "studyspace_operation_duration_seconds",
    "Duration of core operations",
    ["operation"]
)


class MetricsCollector:
    """Thin facade over the Prometheus collectors"""

    SLOW_OPERATION_SECONDS = 2.0

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def track_operation(self, operation: str):
        """Time an operation and count failures by exception type"""
        start_time = time.perf_counter()
        try:
            yield
        except Exception as e:
            OPERATION_FAILURES.labels(operation=operation, error=type(e).__name__).inc()
            raise
        finally:
            duration = time.perf_counter() - start_time
            OPERATION_DURATION.labels(operation=operation).observe(duration)
            if duration > self.SLOW_OPERATION_SECONDS:
                self.logger.warning(f"Slow {operation} operation: {duration:.2f}s")

    def record_decision(self, flow: str, outcome: str):
        AVAILABILITY_DECISIONS.labels(flow=flow, outcome=outcome).inc()

    def record_transition(self, to_status: str):
        RESERVATION_TRANSITIONS.labels(to_status=to_status).inc()

    def record_timeouts(self, count: int):
        if count:
            TIMED_OUT_RESERVATIONS.inc(count)


# Global instances
metrics_collector = MetricsCollector()
