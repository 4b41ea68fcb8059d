"""Tracing helpers for the sync jobs and metric calculations."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import wraps
from typing import ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode, Tracer

P = ParamSpec("P")
R = TypeVar("R")

SpanAttributes = dict[str, str | int | float | bool]


def get_tracer(name: str) -> Tracer:
    """Get a tracer for the given module name.

    Args:
        name: Module name, typically __name__.

    Returns:
        A Tracer instance for creating spans.
    """
    return trace.get_tracer(name)


def add_span_attributes(attributes: SpanAttributes) -> None:
    """Add attributes to the current span, if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def get_current_trace_id() -> str | None:
    """Get the current trace ID as a 32-character hex string, or None."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    return None


def get_current_span_id() -> str | None:
    """Get the current span ID as a 16-character hex string, or None."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.span_id, "016x")
    return None


@asynccontextmanager
async def start_span(
    tracer: Tracer, name: str, attributes: SpanAttributes | None = None
) -> AsyncIterator[Span]:
    """Open a span that records and re-raises any exception.

    Args:
        tracer: Tracer creating the span.
        name: Span name, e.g. ``sync.DEPLOYMENT_SYNC_api``.
        attributes: Attributes set when the span starts.

    Yields:
        The active span.
    """
    with tracer.start_as_current_span(
        name,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        span.set_status(Status(StatusCode.OK))


def traced(
    span_name: str, attributes: SpanAttributes | None = None
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator tracing a coroutine function under ``span_name``.

    Example:
        @traced("metrics.lead_time.calculate")
        async def calculate(self) -> int:
            ...
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            # Resolved per call so a provider installed after import is used.
            tracer = get_tracer(fn.__module__)
            async with start_span(tracer, span_name, attributes):
                return await fn(*args, **kwargs)

        return wrapper

    return decorator
