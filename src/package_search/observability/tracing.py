"""OpenTelemetry spans for index builds and searches, plus request id binding."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from starlette.datastructures import MutableHeaders

from package_search.observability.context import annotated, bound_trace


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

TRACE_HEADER = "x-trace-id"


def init_tracing(service_name: str = "package-search-index") -> TracerProvider:
    """Install an SDK tracer provider tagged with ``service_name``."""
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    trace.set_tracer_provider(provider)
    logger.info("Tracing initialized for service: %s", service_name)
    return provider


def get_tracer() -> Tracer:
    return trace.get_tracer("package_search")


@contextmanager
def index_span(operation: str, *, generation: int | None = None, **attributes: Any) -> Iterator[Span]:
    """Open ``index.<operation>`` with ``index.*`` attributes.

    While the span is open, log records carry its span id and the snapshot
    generation it concerns. Exceptions are recorded on the span and re-raised.
    """
    with get_tracer().start_as_current_span(f"index.{operation}") as span:
        if generation is not None:
            span.set_attribute("index.generation", generation)
        for key, value in attributes.items():
            span.set_attribute(f"index.{key}", value)

        span_context = span.get_span_context()
        span_id = format(span_context.span_id, "016x") if span_context.is_valid else None
        with annotated(span_id=span_id, generation=generation):
            yield span


class TraceContextMiddleware:
    """Bind per-request trace ids and echo the trace id in the response.

    An inbound ``x-trace-id`` header is reused so callers can correlate their
    own logs with ours.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        inbound = None
        for name, value in scope.get("headers", []):
            if name == TRACE_HEADER.encode():
                inbound = value.decode("latin-1").strip() or None
                break

        with bound_trace(inbound) as ids:

            async def send_with_trace_id(message: dict) -> None:
                if message["type"] == "http.response.start":
                    MutableHeaders(scope=message).append(TRACE_HEADER, ids.trace_id)
                await send(message)

            await self.app(scope, receive, send_with_trace_id)
