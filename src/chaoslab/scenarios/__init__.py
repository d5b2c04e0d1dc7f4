"""Example agent pipelines driven through the chaos core."""

from .base import ScenarioContext, StepResult, run_guarded_step, run_local_step
from .runner import SCENARIO_DESCRIPTIONS, SCENARIOS, ScenarioRun, mock_client, run_scenario

__all__ = [
    "ScenarioContext", "StepResult", "run_guarded_step", "run_local_step",
    "SCENARIO_DESCRIPTIONS", "SCENARIOS", "ScenarioRun", "mock_client", "run_scenario",
]
