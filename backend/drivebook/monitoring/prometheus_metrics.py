"""
Prometheus metrics module for DriveBook.

HTTP request metrics are fed by ``PrometheusMiddleware``, service metrics by
``BaseService.measure_operation``, and the booking workflow records its own
domain counters through the helpers on ``PrometheusMetrics``.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Own registry: nothing from the default process collectors leaks in
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "drivebook_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "drivebook_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

http_requests_in_progress = Gauge(
    "drivebook_http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "drivebook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "drivebook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "drivebook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Booking workflow counters
appointments_created_total = Counter(
    "drivebook_appointments_created_total",
    "Appointments created",
    registry=REGISTRY,
)

appointment_transitions_total = Counter(
    "drivebook_appointment_transitions_total",
    "Appointment status transitions applied",
    ["from_status", "to_status"],
    registry=REGISTRY,
)

slot_booking_conflicts_total = Counter(
    "drivebook_slot_booking_conflicts_total",
    "Booking attempts rejected because the slot was unavailable",
    ["reason"],  # already_booked | race | invalid
    registry=REGISTRY,
)

verification_decisions_total = Counter(
    "drivebook_verification_decisions_total",
    "Admin verification decisions",
    ["decision"],
    registry=REGISTRY,
)

documents_stored_total = Counter(
    "drivebook_documents_stored_total",
    "Documents written to the document store",
    ["kind", "backend"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch the metric objects directly."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
        http_request_duration_seconds.labels(**labels).observe(duration)
        http_requests_total.labels(**labels).inc()

    @staticmethod
    def track_http_request_start(method: str, endpoint: str) -> None:
        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

    @staticmethod
    def track_http_request_end(method: str, endpoint: str) -> None:
        http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """Fed by ``BaseService.measure_operation``; ``status`` is success or error."""
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def inc_appointment_created() -> None:
        appointments_created_total.inc()

    @staticmethod
    def inc_appointment_transition(from_status: str, to_status: str) -> None:
        appointment_transitions_total.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def inc_slot_booking_conflict(reason: str) -> None:
        slot_booking_conflicts_total.labels(reason=reason).inc()

    @staticmethod
    def inc_verification_decision(decision: str) -> None:
        verification_decisions_total.labels(decision=decision).inc()

    @staticmethod
    def inc_document_stored(kind: str, backend: str) -> None:
        documents_stored_total.labels(kind=kind, backend=backend).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Current registry in the text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
