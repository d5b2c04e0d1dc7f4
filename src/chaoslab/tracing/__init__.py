"""OpenTelemetry export of scenario runs."""

from .spans import finish_scenario_span, get_tracer, record_row, start_scenario_span

__all__ = ["finish_scenario_span", "get_tracer", "record_row", "start_scenario_span"]
