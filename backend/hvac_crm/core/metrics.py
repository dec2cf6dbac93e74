"""
Prometheus metrics and instrumentation helpers.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


HTTP_REQUESTS_TOTAL = Counter(
    "app_http_requests_total",
    "Total count of HTTP requests processed.",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "app_http_request_duration_seconds",
    "Histogram of HTTP request durations in seconds.",
    ["method", "path"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

HTTP_REQUEST_ERRORS = Counter(
    "app_http_request_errors_total",
    "Count of HTTP requests resulting in error responses.",
    ["method", "path", "status"],
)

BOOKINGS_CREATED = Counter(
    "app_bookings_created_total",
    "Service requests created through booking intake.",
)

STATUS_TRANSITIONS = Counter(
    "app_status_transitions_total",
    "Service request status changes, labelled by the new status.",
    ["status"],
)

TECHNICIAN_ASSIGNMENTS = Counter(
    "app_technician_assignments_total",
    "Technician assignments applied to service requests.",
)

SMS_MESSAGES = Counter(
    "app_sms_sent_total",
    "Outbound SMS attempts partitioned by template and outcome.",
    ["template", "outcome"],
)

EXTERNAL_API_RETRIES = Counter(
    "app_external_api_retries_total",
    "Retries issued when calling external APIs.",
    ["service"],
)


def _normalise_path(request: Request) -> str:
    """
    Prefer the full route template to keep metric label cardinality low.

    Routes served through an included router may report a template relative
    to that router; the leading segments of the request path fill in the
    router prefix.
    """
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if template is None:
        return request.url.path

    actual = [part for part in request.url.path.split("/") if part]
    relative = [part for part in template.split("/") if part]
    prefix = actual[: max(len(actual) - len(relative), 0)]
    return "/" + "/".join(prefix + relative)


def observe_http_request(method: str, path: str, status_code: int, duration: float) -> None:
    """Record metrics for an HTTP request."""
    status_str = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status=status_str).inc()
    HTTP_REQUEST_DURATION.labels(method=method, path=path).observe(duration)

    if status_code >= 400:
        HTTP_REQUEST_ERRORS.labels(method=method, path=path, status=status_str).inc()


def record_booking_created() -> None:
    BOOKINGS_CREATED.inc()


def record_status_transition(status: str) -> None:
    STATUS_TRANSITIONS.labels(status=status).inc()


def record_assignment() -> None:
    TECHNICIAN_ASSIGNMENTS.inc()
    STATUS_TRANSITIONS.labels(status="scheduled").inc()


def record_sms(template: str, outcome: str) -> None:
    SMS_MESSAGES.labels(template=template, outcome=outcome).inc()


def record_external_api_retry(service: str) -> None:
    """Increment retry counter for an external service."""
    EXTERNAL_API_RETRIES.labels(service=service).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware for capturing request metrics."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        method = request.method
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            observe_http_request(method, _normalise_path(request), 500, time.perf_counter() - start)
            raise

        # The route is only resolved once the router has handled the request.
        observe_http_request(
            method, _normalise_path(request), response.status_code, time.perf_counter() - start
        )
        return response


__all__ = [
    "MetricsMiddleware",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "HTTP_REQUEST_ERRORS",
    "BOOKINGS_CREATED",
    "STATUS_TRANSITIONS",
    "TECHNICIAN_ASSIGNMENTS",
    "SMS_MESSAGES",
    "EXTERNAL_API_RETRIES",
    "observe_http_request",
    "record_booking_created",
    "record_status_transition",
    "record_assignment",
    "record_sms",
    "record_external_api_retry",
]
