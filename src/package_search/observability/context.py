"""Correlation ids shared by log records and index spans.

Ids are bound for the lifetime of a request (or a background rebuild) and
restored on exit, so nothing leaks between requests running on the same
thread or event loop.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from uuid import uuid4


@dataclass(frozen=True)
class TraceIds:
    trace_id: str
    span_id: str
    generation: int | None = None


UNBOUND = TraceIds(trace_id="", span_id="")

_current: ContextVar[TraceIds] = ContextVar("package_search_trace_ids", default=UNBOUND)


def new_span_id() -> str:
    return uuid4().hex[:16]


def current_ids() -> TraceIds:
    """Ids bound to the running context; empty strings outside any request."""
    return _current.get()


@contextmanager
def bound_trace(trace_id: str | None = None) -> Iterator[TraceIds]:
    """Bind ``trace_id`` (or a fresh one) plus a new span id until exit."""
    ids = TraceIds(trace_id=trace_id or uuid4().hex, span_id=new_span_id())
    token = _current.set(ids)
    try:
        yield ids
    finally:
        _current.reset(token)


@contextmanager
def annotated(*, span_id: str | None = None, generation: int | None = None) -> Iterator[TraceIds]:
    """Narrow the current ids to a child span and/or index generation until exit."""
    ids = _current.get()
    if ids is UNBOUND:
        ids = TraceIds(trace_id=uuid4().hex, span_id=new_span_id())
    changes: dict[str, object] = {}
    if span_id:
        changes["span_id"] = span_id
    if generation is not None:
        changes["generation"] = generation
    token = _current.set(replace(ids, **changes))
    try:
        yield _current.get()
    finally:
        _current.reset(token)
