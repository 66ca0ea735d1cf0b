"""Fetch tracing for cursors.

Every page fetch a cursor makes runs inside :func:`track_fetch`. While tracing
is enabled the fetch is timed, reported to listeners as a :class:`FetchEvent`,
logged at WARNING when slow, and wrapped in an OpenTelemetry span when
``opentelemetry-api`` is installed.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager, contextmanager, nullcontext
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, ContextManager, Iterator, Mapping

logger = logging.getLogger("couchpager")

FetchListener = Callable[["FetchEvent"], Any]


@dataclass(frozen=True)
class FetchEvent:
    """One page fetch made by a cursor."""

    operation: str  # "next", "prev" or "same"
    cursor: str  # cursor kind
    depth: int  # history depth when the fetch started
    options: dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    result_count: int | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class _Tracing:
    def __init__(self) -> None:
        self.enabled = False
        self.slow_fetch_ms = 100.0
        self.listeners: list[FetchListener] = []


_tracing = _Tracing()


def enable_tracing(slow_fetch_ms: float = 100.0) -> None:
    """Start tracing cursor fetches.

    Args:
        slow_fetch_ms: Fetches slower than this are logged at WARNING
    """
    _tracing.enabled = True
    _tracing.slow_fetch_ms = slow_fetch_ms


def disable_tracing() -> None:
    """Stop tracing and drop all listeners."""
    _tracing.enabled = False
    _tracing.slow_fetch_ms = 100.0
    _tracing.listeners.clear()


def add_listener(callback: FetchListener) -> None:
    _tracing.listeners.append(callback)


def remove_listener(callback: FetchListener) -> None:
    _tracing.listeners.remove(callback)


@contextmanager
def record_fetches(slow_fetch_ms: float | None = None) -> Iterator[list[FetchEvent]]:
    """Collect the fetch events emitted inside the block.

    Tracing is switched on for the block; the previous tracing state is
    restored afterwards.
    """
    was_enabled, was_slow_fetch_ms = _tracing.enabled, _tracing.slow_fetch_ms
    _tracing.enabled = True
    if slow_fetch_ms is not None:
        _tracing.slow_fetch_ms = slow_fetch_ms
    events: list[FetchEvent] = []
    add_listener(events.append)
    try:
        yield events
    finally:
        remove_listener(events.append)
        _tracing.enabled = was_enabled
        _tracing.slow_fetch_ms = was_slow_fetch_ms


def _report(event: FetchEvent) -> None:
    if event.duration_ms > _tracing.slow_fetch_ms:
        logger.warning(
            "Slow fetch: %s page on %s cursor at depth %d took %.1fms (threshold: %.1fms, limit=%s)",
            event.operation,
            event.cursor,
            event.depth,
            event.duration_ms,
            _tracing.slow_fetch_ms,
            event.options.get("limit"),
        )
    for listener in list(_tracing.listeners):
        listener(event)


def _fetch_span(operation: str, cursor: str, depth: int, options: Mapping[str, Any]) -> ContextManager[Any]:
    try:
        from opentelemetry import trace
    except ImportError:
        return nullcontext()

    attributes = {
        "couchpager.cursor": cursor,
        "couchpager.operation": operation,
        "couchpager.depth": depth,
    }
    if "limit" in options:
        attributes["couchpager.limit"] = options["limit"]
    tracer = trace.get_tracer("couchpager")
    return tracer.start_as_current_span(f"couchpager.{cursor}.{operation}", attributes=attributes)


@asynccontextmanager
async def track_fetch(
    operation: str, cursor: str, depth: int, options: Mapping[str, Any]
) -> AsyncIterator[dict[str, Any]]:
    """Trace the page fetch run inside the block.

    The block stores the number of rows or docs it received under
    ``"result_count"`` in the yielded dict. Errors are recorded on the event
    and re-raised.
    """
    ctx: dict[str, Any] = {"result_count": None}
    if not _tracing.enabled:
        yield ctx
        return

    error = None
    start = time.perf_counter()
    with _fetch_span(operation, cursor, depth, options) as span:
        try:
            yield ctx
        except BaseException as e:
            error = f"{type(e).__name__}: {e}"
            raise
        finally:
            if span is not None and ctx["result_count"] is not None:
                span.set_attribute("couchpager.result_count", ctx["result_count"])
            _report(
                FetchEvent(
                    operation=operation,
                    cursor=cursor,
                    depth=depth,
                    options=dict(options),
                    duration_ms=(time.perf_counter() - start) * 1000,
                    result_count=ctx["result_count"],
                    error=error,
                )
            )
