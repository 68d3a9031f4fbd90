"""
Prometheus collectors for the chat backend.

Three producers feed this module: PrometheusMiddleware for HTTP traffic,
BaseService.measure_operation for service calls, and the realtime layer
for fan-out events and live session counts. Everything registers on a
private CollectorRegistry so test runs and reloads never collide with the
process-wide default registry.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

_HTTP_LABELS = ("method", "endpoint", "status_code")
_SERVICE_LABELS = ("service", "operation")

http_request_duration_seconds = Histogram(
    "chatapp_http_request_duration_seconds",
    "Wall time spent answering an HTTP request",
    _HTTP_LABELS,
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
http_requests_total = Counter(
    "chatapp_http_requests_total",
    "HTTP requests answered, by route template and status",
    _HTTP_LABELS,
    registry=REGISTRY,
)
http_requests_in_progress = Gauge(
    "chatapp_http_requests_in_progress",
    "HTTP requests currently inside the app",
    ("method", "endpoint"),
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "chatapp_service_operation_duration_seconds",
    "Time spent inside a measured service method",
    _SERVICE_LABELS,
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5),
)
service_operations_total = Counter(
    "chatapp_service_operations_total",
    "Measured service calls, split by outcome",
    _SERVICE_LABELS + ("status",),
    registry=REGISTRY,
)
errors_total = Counter(
    "chatapp_errors_total",
    "Service calls that raised, by exception class",
    _SERVICE_LABELS + ("error_type",),
    registry=REGISTRY,
)

realtime_events_total = Counter(
    "chatapp_realtime_events_total",
    "Realtime events handed to the transport",
    ("event", "status"),
    registry=REGISTRY,
)
realtime_sessions_active = Gauge(
    "chatapp_realtime_sessions_active",
    "Live sessions currently connected to this worker",
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch collector objects directly."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        status = str(status_code)
        http_request_duration_seconds.labels(method, endpoint, status).observe(duration)
        http_requests_total.labels(method, endpoint, status).inc()

    @staticmethod
    def track_http_request_start(method: str, endpoint: str) -> None:
        http_requests_in_progress.labels(method, endpoint).inc()

    @staticmethod
    def track_http_request_end(method: str, endpoint: str) -> None:
        http_requests_in_progress.labels(method, endpoint).dec()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record one measured service call.

        `status` is "success" or "error"; on error the exception class name
        lands in `error_type` and bumps chatapp_errors_total as well.
        """
        service_operation_duration_seconds.labels(service, operation).observe(duration)
        service_operations_total.labels(service, operation, status).inc()
        if status == "error" and error_type:
            errors_total.labels(service, operation, error_type).inc()

    @staticmethod
    def record_realtime_event(event: str, status: str = "sent") -> None:
        realtime_events_total.labels(event, status).inc()

    @staticmethod
    def set_active_sessions(count: int) -> None:
        realtime_sessions_active.set(count)

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
