"""Tests for the observability module."""

import pytest
import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from src.infrastructure.observability.setup import configure_logging
from src.infrastructure.observability.structlog_processor import add_trace_context
from src.infrastructure.observability.tracing import (
    add_span_attributes,
    get_current_span_id,
    get_current_trace_id,
    get_tracer,
    start_span,
    traced,
)

# Module-level setup: configure TracerProvider once before any tests run
_exporter = InMemorySpanExporter()
_provider = TracerProvider()
_processor = SimpleSpanProcessor(_exporter)
_provider.add_span_processor(_processor)
trace.set_tracer_provider(_provider)


@pytest.fixture(autouse=True)
def clear_spans():
    """Clear spans before each test."""
    _exporter.clear()
    yield
    _exporter.clear()


def get_finished_spans():
    """Get finished spans from the module-level exporter."""
    return _exporter.get_finished_spans()


class TestTracedDecorator:
    """Tests for the @traced decorator."""

    async def test_wraps_coroutine_in_named_span(self):
        @traced("metrics.example", {"component": "test"})
        async def compute(x: int) -> int:
            return x * 2

        assert await compute(21) == 42

        spans = get_finished_spans()
        assert len(spans) == 1
        assert spans[0].name == "metrics.example"
        assert dict(spans[0].attributes or {}) == {"component": "test"}
        assert spans[0].status.status_code == trace.StatusCode.OK

    async def test_preserves_function_metadata(self):
        @traced("metrics.example")
        async def compute() -> None:
            """Docstring."""

        assert compute.__name__ == "compute"
        assert compute.__doc__ == "Docstring."

    async def test_records_exception_and_reraises(self):
        @traced("metrics.failing")
        async def fail() -> None:
            raise ValueError("test error")

        with pytest.raises(ValueError, match="test error"):
            await fail()

        spans = get_finished_spans()
        assert len(spans) == 1
        assert spans[0].status.status_code == trace.StatusCode.ERROR
        assert spans[0].status.description == "test error"
        assert len(spans[0].events) == 1


class TestStartSpan:
    """Tests for the start_span context manager."""

    async def test_sets_attributes_and_ok_status(self):
        tracer = get_tracer("test")

        async with start_span(tracer, "sync.commit_sync", {"sync.job": "commit_sync"}) as span:
            span.set_attribute("sync.commits", 3)

        spans = get_finished_spans()
        assert len(spans) == 1
        attrs = dict(spans[0].attributes or {})
        assert attrs == {"sync.job": "commit_sync", "sync.commits": 3}
        assert spans[0].status.status_code == trace.StatusCode.OK

    async def test_error_status_on_exception(self):
        tracer = get_tracer("test")

        with pytest.raises(RuntimeError):
            async with start_span(tracer, "sync.broken"):
                raise RuntimeError("GitHub unavailable")

        spans = get_finished_spans()
        assert spans[0].status.status_code == trace.StatusCode.ERROR
        assert spans[0].status.description == "GitHub unavailable"
        assert [event.name for event in spans[0].events] == ["exception"]


class TestSpanContextHelpers:
    """Tests for reading and enriching the active span."""

    async def test_sync_job_span_ids_reach_log_events(self):
        tracer = get_tracer("test")

        async with start_span(tracer, "sync.incident_sync"):
            add_span_attributes({"sync.incidents_created": 2})
            trace_id = get_current_trace_id()
            span_id = get_current_span_id()
            event = add_trace_context(None, "info", {"event": "incident_sync_finished"})

        assert trace_id is not None and len(trace_id) == 32
        assert span_id is not None and len(span_id) == 16
        assert event == {
            "event": "incident_sync_finished",
            "trace_id": trace_id,
            "span_id": span_id,
        }
        attrs = dict(get_finished_spans()[0].attributes or {})
        assert attrs["sync.incidents_created"] == 2

    def test_no_active_span(self):
        add_span_attributes({"ignored": True})

        assert get_current_trace_id() is None
        assert get_current_span_id() is None
        assert add_trace_context(None, "info", {"event": "startup"}) == {"event": "startup"}

    async def test_traced_calls_nest_under_job_span(self):
        @traced("metrics.lead_time.calculate")
        async def calculate() -> int:
            return 0

        async with start_span(get_tracer("test"), "sync.DEPLOYMENT_SYNC_api"):
            await calculate()

        spans = {s.name: s for s in get_finished_spans()}
        child = spans["metrics.lead_time.calculate"]
        assert child.parent is not None
        assert child.parent.span_id == spans["sync.DEPLOYMENT_SYNC_api"].context.span_id


class TestConfigureLogging:
    """Tests for structlog configuration."""

    @pytest.fixture(autouse=True)
    def restore_structlog(self):
        saved = structlog.get_config()
        yield
        structlog.configure(**saved)

    def test_json_output_with_trace_context(self):
        configure_logging(debug=False)

        processors = structlog.get_config()["processors"]
        assert add_trace_context in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_output_in_debug(self):
        configure_logging(debug=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
