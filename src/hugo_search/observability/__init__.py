"""Observability module for structured logging, request context and metrics."""

from hugo_search.observability.context import (
    RequestContextMiddleware,
    get_request_context,
    request_context,
    set_request_context,
)
from hugo_search.observability.logging import JsonFormatter, configure_logging
from hugo_search.observability.metrics import (
    INDEX_DOC_COUNT,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SEARCH_LATENCY,
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)


__all__ = [
    "INDEX_DOC_COUNT",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "MetricsMiddleware",
    "RequestContextMiddleware",
    "configure_logging",
    "get_metrics",
    "get_metrics_content_type",
    "get_request_context",
    "request_context",
    "set_request_context",
    "track_latency",
]
