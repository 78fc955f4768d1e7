"""
Prometheus instrumentation for Farewelly.

All collectors live on a private registry scraped through ``/metrics``.
Service timings are fed by ``BaseService.measure_operation``; the domain
counters track the notification outbox, money movement, booking
transitions and rate-limit decisions.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

_FAST_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
_DISPATCH_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


def _counter(name: str, doc: str, labels: list[str]) -> Counter:
    return Counter(f"farewelly_{name}", doc, labels, registry=REGISTRY)


def _histogram(name: str, doc: str, labels: list[str], buckets: tuple[float, ...]) -> Histogram:
    return Histogram(f"farewelly_{name}", doc, labels, registry=REGISTRY, buckets=buckets)


service_operation_duration_seconds = _histogram(
    "service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    _FAST_BUCKETS,
)
service_operations_total = _counter(
    "service_operations_total", "Service operations by status", ["service", "operation", "status"]
)
errors_total = _counter(
    "errors_total", "Service operation failures by exception type", ["service", "operation", "error_type"]
)

notifications_enqueue_failures_total = _counter(
    "notifications_enqueue_failures_total",
    "Notification events that could not be written to the outbox",
    ["event_type"],
)
notifications_outbox_total = _counter(
    "notifications_outbox_total", "Notification outbox delivery outcomes", ["status", "event_type"]
)
notifications_outbox_attempt_total = _counter(
    "notifications_outbox_attempt_total", "Notification outbox delivery attempts", ["event_type"]
)
notifications_dispatch_seconds = _histogram(
    "notifications_dispatch_seconds",
    "Notification provider dispatch duration in seconds",
    ["event_type"],
    _DISPATCH_BUCKETS,
)

# outcome: completed | declined
payments_total = _counter("payments_total", "Payment attempts by outcome", ["outcome"])
# outcome: completed | denied | provider_failed
refunds_total = _counter(
    "refunds_total", "Refund attempts by outcome and requester role", ["outcome", "requester_type"]
)
booking_transitions_total = _counter(
    "booking_transitions_total", "Booking status transitions applied by venues", ["action"]
)
# creator_type: family | director
bookings_created_total = _counter(
    "bookings_created_total", "Bookings created by creator role", ["creator_type"]
)
# status: in_progress | at_risk | emergency
compliance_alerts_total = _counter(
    "compliance_alerts_total", "Legal deadline alerts raised by status", ["status"]
)
# action: allow | block | error
rate_limit_decisions_total = _counter(
    "rate_limit_decisions_total", "Rate-limit decisions", ["bucket", "action"]
)


class PrometheusMetrics:
    """Thin recording facade so callers never touch collectors directly."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_notification_enqueue_failure(event_type: str) -> None:
        notifications_enqueue_failures_total.labels(event_type=event_type).inc()

    @staticmethod
    def record_notification_attempt(event_type: str) -> None:
        notifications_outbox_attempt_total.labels(event_type=event_type).inc()

    @staticmethod
    def record_notification_outcome(event_type: str, status: str) -> None:
        """Count one delivery outcome: sent, retry or failed."""
        notifications_outbox_total.labels(status=status, event_type=event_type).inc()

    @staticmethod
    def observe_notification_dispatch(event_type: str, duration: float) -> None:
        notifications_dispatch_seconds.labels(event_type=event_type).observe(max(duration, 0.0))

    @staticmethod
    def record_payment(outcome: str) -> None:
        payments_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_refund(outcome: str, requester_type: str) -> None:
        refunds_total.labels(outcome=outcome, requester_type=requester_type).inc()

    @staticmethod
    def record_booking_transition(action: str) -> None:
        booking_transitions_total.labels(action=action).inc()

    @staticmethod
    def record_booking_created(creator_type: str) -> None:
        bookings_created_total.labels(creator_type=creator_type).inc()

    @staticmethod
    def record_compliance_alert(status: str) -> None:
        compliance_alerts_total.labels(status=status).inc()

    @staticmethod
    def record_rate_limit_decision(bucket: str, action: str) -> None:
        rate_limit_decisions_total.labels(bucket=bucket, action=action).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Render the registry in the text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
