"""
Prometheus metrics for Tutorlink.

HTTP metrics are recorded by ``PrometheusMiddleware``; service metrics
come from ``@BaseService.measure_operation``. Business counters track the
booking and payment lifecycle.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry keeps test runs and reloads free of duplicate-metric errors
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "tutorlink_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

http_requests_total = Counter(
    "tutorlink_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "tutorlink_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "tutorlink_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "tutorlink_errors_total",
    "Total number of service errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "tutorlink_booking_transitions_total",
    "Booking status transitions",
    ["to_status"],
    registry=REGISTRY,
)

payment_events_total = Counter(
    "tutorlink_payment_events_total",
    "Payment lifecycle events",
    ["event"],
    registry=REGISTRY,
)

notifications_total = Counter(
    "tutorlink_notifications_total",
    "Notification send attempts",
    ["kind", "outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch metric objects directly."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
        http_request_duration_seconds.labels(**labels).observe(duration)
        http_requests_total.labels(**labels).inc()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """Record metrics emitted by the @measure_operation decorator."""
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(duration)
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_booking_transition(to_status: str) -> None:
        booking_transitions_total.labels(to_status=to_status).inc()

    @staticmethod
    def record_payment_event(event: str) -> None:
        payment_events_total.labels(event=event).inc()

    @staticmethod
    def record_notification(kind: str, success: bool) -> None:
        notifications_total.labels(kind=kind, outcome="sent" if success else "failed").inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
