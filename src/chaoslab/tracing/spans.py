"""Helpers to emit scenario runs as OpenTelemetry spans.

A run is one span; every trace row becomes a span event, so the score
inputs are visible in any OTel backend. Without an SDK configured the API
tracer is a no-op.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opentelemetry import trace

from chaoslab.tracing.conventions import (
    CHAOS_ENABLED,
    CHAOS_SCENARIO,
    CHAOS_SCORE,
    CHAOS_SEED,
    SCENARIO_SPAN_PREFIX,
    STEP_ACTION,
    STEP_DURATION_MS,
    STEP_EVENT,
    STEP_FAULT,
    STEP_INDEX,
    STEP_STATUS,
    STEP_TOOL,
    TRACER_NAME,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer

    from chaoslab.trace import TraceRow


def get_tracer() -> Tracer:
    return trace.get_tracer(TRACER_NAME)


def start_scenario_span(tracer: Tracer, scenario: str, seed: str, chaos: bool) -> Span:
    """Start a span representing one scenario run."""
    span = tracer.start_span(f"{SCENARIO_SPAN_PREFIX}:{scenario}")
    span.set_attribute(CHAOS_SCENARIO, scenario)
    span.set_attribute(CHAOS_SEED, seed)
    span.set_attribute(CHAOS_ENABLED, chaos)
    return span


def record_row(span: Span, row: TraceRow) -> None:
    """Attach a trace row to ``span`` as a step event."""
    attributes: dict[str, Any] = {
        STEP_INDEX: row.i,
        STEP_TOOL: row.tool,
        STEP_STATUS: row.status.value,
        STEP_DURATION_MS: row.duration_ms,
    }
    if row.fault:
        attributes[STEP_FAULT] = row.fault
    if row.action:
        attributes[STEP_ACTION] = row.action
    span.add_event(STEP_EVENT, attributes=attributes)


def finish_scenario_span(span: Span, score: int) -> None:
    span.set_attribute(CHAOS_SCORE, score)
    span.end()
