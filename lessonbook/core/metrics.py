"""Prometheus metrics for HTTP traffic and booking engine activity."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS_TOTAL = Counter(
    "lessonbook_http_requests_total",
    "Total number of HTTP requests handled by the API.",
    ["method", "path", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "lessonbook_http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

BOOKING_REQUEST_TRANSITIONS_TOTAL = Counter(
    "lessonbook_booking_request_transitions_total",
    "Booking requests created or resolved, by kind, direction and resulting status.",
    ["kind", "direction", "status"],
)

PACKAGE_CREDIT_OPERATIONS_TOTAL = Counter(
    "lessonbook_package_credit_operations_total",
    "Credit ledger mutations applied to student packages.",
    ["operation"],
)


def record_request_transition(kind: str, direction: str, status: str) -> None:
    BOOKING_REQUEST_TRANSITIONS_TOTAL.labels(
        kind=str(kind),
        direction=str(direction),
        status=str(status),
    ).inc()


def record_credit_operation(operation: str) -> None:
    PACKAGE_CREDIT_OPERATIONS_TOTAL.labels(operation=operation).inc()


def _request_path_label(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if route_path:
        return str(route_path)
    return request.url.path


async def instrument_http_request(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Track request count and latency for each endpoint."""
    started_at = perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        path_label = _request_path_label(request)
        method_label = request.method.upper()

        HTTP_REQUESTS_TOTAL.labels(
            method=method_label,
            path=path_label,
            status_code=str(status_code),
        ).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(
            method=method_label,
            path=path_label,
        ).observe(perf_counter() - started_at)


def build_metrics_response() -> Response:
    """Return metrics payload in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
