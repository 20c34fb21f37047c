"""Prometheus metrics for request and search golden signals."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.routing import Match


if TYPE_CHECKING:
    from collections.abc import Generator


REQUEST_COUNT = Counter(
    "hugo_search_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

REQUEST_LATENCY = Histogram(
    "hugo_search_request_latency_seconds",
    "HTTP request latency in seconds",
    ["route"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

SEARCH_LATENCY = Histogram(
    "hugo_search_search_latency_seconds",
    "Search query latency",
    ["index"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

INDEX_DOC_COUNT = Gauge(
    "hugo_search_documents",
    "Documents in index",
    ["index"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


class MetricsMiddleware:
    """Count requests and observe latency per matched route template.

    Unmatched paths share the ``unmatched`` route label to keep label
    cardinality bounded.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        status_holder = {"status": 500}

        async def send_with_status(message: dict) -> None:
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
            await send(message)

        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_with_status)
        finally:
            route = _route_template(scope)
            REQUEST_LATENCY.labels(route=route).observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(
                method=scope.get("method", ""),
                route=route,
                status=str(status_holder["status"]),
            ).inc()


def _route_template(scope: dict) -> str:
    app = scope.get("app")
    for route in getattr(app, "routes", None) or []:
        match, _ = route.matches(scope)
        if match != Match.NONE:
            return getattr(route, "path", "unmatched")
    return "unmatched"


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
