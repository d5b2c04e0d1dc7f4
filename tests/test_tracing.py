"""Tests for OpenTelemetry scenario spans."""

from __future__ import annotations

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    SimpleSpanProcessor,
    SpanExporter,
    SpanExportResult,
)

from chaoslab.chaos.config import FaultConfig
from chaoslab.scenarios.runner import run_scenario
from chaoslab.trace import StepStatus, TraceRow
from chaoslab.tracing.conventions import (
    CHAOS_ENABLED,
    CHAOS_SCENARIO,
    CHAOS_SCORE,
    CHAOS_SEED,
    STEP_ACTION,
    STEP_EVENT,
    STEP_FAULT,
    STEP_TOOL,
)
from chaoslab.tracing.spans import finish_scenario_span, record_row, start_scenario_span


# ---------------------------------------------------------------------------
# In-memory span exporter for testing
# ---------------------------------------------------------------------------


class _InMemorySpanExporter(SpanExporter):
    """Minimal in-memory span exporter for tests."""

    def __init__(self) -> None:
        self._spans: list = []

    def export(self, spans):  # type: ignore[override]
        self._spans.extend(spans)
        return SpanExportResult.SUCCESS

    def get_finished_spans(self) -> list:
        return list(self._spans)

    def shutdown(self) -> None:
        pass


@pytest.fixture()
def span_exporter():
    return _InMemorySpanExporter()


@pytest.fixture()
def tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("test-chaoslab")


class TestConventions:
    def test_attribute_names(self):
        assert CHAOS_SCENARIO == "chaoslab.scenario"
        assert CHAOS_SEED == "chaoslab.seed"
        assert CHAOS_SCORE == "chaoslab.score"
        assert STEP_EVENT == "chaoslab.step"


class TestSpanHelpers:
    def test_span_lifecycle(self, tracer, span_exporter):
        span = start_scenario_span(tracer, "fetch", "1337", True)
        record_row(span, TraceRow("web.fetch", StepStatus.FAILED, 1, 12.0, "http_500", "retry(1)"))
        record_row(span, TraceRow("summarize", StepStatus.OK, 2, 1.0))
        finish_scenario_span(span, 87)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "scenario:fetch"
        assert finished.attributes[CHAOS_SEED] == "1337"
        assert finished.attributes[CHAOS_ENABLED] is True
        assert finished.attributes[CHAOS_SCORE] == 87
        first, second = finished.events
        assert first.name == STEP_EVENT
        assert first.attributes[STEP_FAULT] == "http_500"
        assert first.attributes[STEP_ACTION] == "retry(1)"
        assert STEP_FAULT not in second.attributes
        assert second.attributes[STEP_TOOL] == "summarize"


class TestScenarioSpans:
    @pytest.mark.asyncio
    async def test_run_emits_one_span_with_row_events(self, tracer, span_exporter, no_wait):
        run = await run_scenario(
            "fetch", "1337", faults=FaultConfig(http_500_rate=1.0), sleep=no_wait, tracer=tracer
        )
        (span,) = span_exporter.get_finished_spans()
        assert span.name == "scenario:fetch"
        assert span.attributes[CHAOS_SCORE] == run.score
        assert len(span.events) == len(run.rows)
        assert [event.attributes[STEP_TOOL] for event in span.events] == [row.tool for row in run.rows]

    @pytest.mark.asyncio
    async def test_span_ended_on_error(self, tracer, span_exporter, no_wait, monkeypatch):
        from chaoslab.scenarios import runner

        async def broken(_ctx):
            raise RuntimeError("scenario crashed")

        monkeypatch.setitem(runner.SCENARIOS, "fetch", broken)
        with pytest.raises(RuntimeError):
            await run_scenario("fetch", "1", sleep=no_wait, tracer=tracer)
        assert len(span_exporter.get_finished_spans()) == 1
