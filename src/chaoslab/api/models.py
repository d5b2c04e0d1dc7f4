"""Pydantic request models for the Chaos Lab REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chaoslab.chaos.config import FaultConfig, TripwireConfig


class RunRequest(BaseModel):
    """Request body for running a scenario."""

    scenario: str = Field(..., description="fetch, json or rag")
    seed: str = "1337"
    chaos: bool = True
    faults: FaultConfig = Field(default_factory=FaultConfig)
    tripwire: TripwireConfig = Field(default_factory=TripwireConfig)
    mttr_target: float = Field(default=30.0, description="MTTR target in seconds")
    baseline: bool = Field(default=False, description="Also run without chaos and report the delta")
    simulate_delays: bool = Field(default=False, description="Actually wait out latency and backoff")


class EvalRequest(BaseModel):
    """Request body for running a built-in evaluation suite."""

    baseline: bool = False
    simulate_delays: bool = False
