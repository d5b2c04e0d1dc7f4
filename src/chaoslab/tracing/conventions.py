"""OpenTelemetry attribute names for chaos runs.

All attributes are namespaced under ``chaoslab.*``.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Run attributes
# ---------------------------------------------------------------------------

CHAOS_SCENARIO = "chaoslab.scenario"
CHAOS_SEED = "chaoslab.seed"
CHAOS_ENABLED = "chaoslab.chaos"
CHAOS_SCORE = "chaoslab.score"

# ---------------------------------------------------------------------------
# Step attributes (set on span events)
# ---------------------------------------------------------------------------

STEP_INDEX = "chaoslab.step.index"
STEP_TOOL = "chaoslab.step.tool"
STEP_STATUS = "chaoslab.step.status"
STEP_FAULT = "chaoslab.step.fault"
STEP_ACTION = "chaoslab.step.action"
STEP_DURATION_MS = "chaoslab.step.duration_ms"

# ---------------------------------------------------------------------------
# Span / event names
# ---------------------------------------------------------------------------

SCENARIO_SPAN_PREFIX = "scenario"
STEP_EVENT = "chaoslab.step"

TRACER_NAME = "chaoslab"
