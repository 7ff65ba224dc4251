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

SERVICE_ORDERS_CREATED = Counter(
    "app_service_orders_created_total",
    "Service orders created through the API.",
)

ORDER_NUMBER_CONFLICTS = Counter(
    "app_order_number_conflicts_total",
    "Order number collisions detected while inserting a service order.",
)

PDF_DOCUMENTS = Counter(
    "app_pdf_documents_total",
    "PDF documents rendered, partitioned by document kind.",
    ["kind"],
)


def route_template(path: str, template: str) -> str:
    """
    Full path template for a request path matched by ``template``.

    Routes registered through an included router may only carry the part of
    the template below the router prefix. The prefix is taken back from the
    leading segments of the concrete path, so ``/api/ordens-servico/4242``
    matched by ``/{ordem_id}`` becomes ``/api/ordens-servico/{ordem_id}``.
    """
    template_parts = [part for part in template.split("/") if part]
    path_parts = [part for part in path.split("/") if part]
    prefix = path_parts[: max(len(path_parts) - len(template_parts), 0)]
    return "/" + "/".join(prefix + template_parts)


def _normalise_path(request: Request) -> str:
    """Prefer route path templates to reduce cardinality in metrics."""
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if not template:
        return request.url.path
    return route_template(request.url.path, template)


def observe_http_request(method: str, path: str, status_code: int, duration: float) -> None:
    """Record metrics for an HTTP request."""
    status_str = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status=status_str).inc()
    HTTP_REQUEST_DURATION.labels(method=method, path=path).observe(duration)

    if status_code >= 400:
        HTTP_REQUEST_ERRORS.labels(method=method, path=path, status=status_str).inc()


def record_order_created() -> None:
    SERVICE_ORDERS_CREATED.inc()


def record_order_number_conflict(retry_state=None) -> None:
    """Count a numbering collision; usable as a tenacity ``before_sleep`` hook."""
    ORDER_NUMBER_CONFLICTS.inc()


def record_pdf_rendered(kind: str) -> None:
    PDF_DOCUMENTS.labels(kind=kind).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware for capturing request metrics."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        method = request.method
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            observe_http_request(method, _normalise_path(request), 500, duration)
            raise

        duration = time.perf_counter() - start
        # The route is only resolved once the request has been dispatched.
        observe_http_request(method, _normalise_path(request), response.status_code, duration)
        return response


__all__ = [
    "MetricsMiddleware",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "HTTP_REQUEST_ERRORS",
    "SERVICE_ORDERS_CREATED",
    "ORDER_NUMBER_CONFLICTS",
    "PDF_DOCUMENTS",
    "observe_http_request",
    "record_order_created",
    "record_order_number_conflict",
    "record_pdf_rendered",
    "route_template",
]
