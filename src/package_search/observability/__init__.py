"""Logging, metrics and tracing for the search index."""

from package_search.observability.context import TraceIds, annotated, bound_trace, current_ids
from package_search.observability.logging import JsonFormatter, configure_logging
from package_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_DOC_COUNT,
    INDEX_SKIPPED_DOCUMENTS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from package_search.observability.tracing import TRACE_HEADER, TraceContextMiddleware, index_span, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_DOC_COUNT",
    "INDEX_SKIPPED_DOCUMENTS",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "TRACE_HEADER",
    "JsonFormatter",
    "TraceContextMiddleware",
    "TraceIds",
    "annotated",
    "bound_trace",
    "configure_logging",
    "current_ids",
    "get_metrics",
    "get_metrics_content_type",
    "index_span",
    "init_metrics",
    "init_tracing",
    "track_latency",
]
