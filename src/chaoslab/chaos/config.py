"""Fault and tripwire configuration models.

Both models are frozen value objects built once per run and passed by
parameter through every injector and tripwire call. Field names are
snake_case; the camelCase names used by the browser UI (``latencyMs``,
``http500Rate``, ``loopN`` ...) are accepted as aliases.

Out-of-range values are clamped rather than rejected.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from chaoslab.scoring.gate import clamp_min_score


def _clamp_rate(value: Any) -> float:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(rate):
        return 0.0
    return min(max(rate, 0.0), 1.0)


def _non_negative_int(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


class FaultConfig(BaseModel):
    """Which faults to inject and how often."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    latency_ms: int = Field(default=0, alias="latencyMs", description="Injected delay magnitude")
    latency_rate: float = Field(default=0.0, alias="latencyRate")
    http_500_rate: float = Field(default=0.0, alias="http500Rate")
    rate_429: float = Field(default=0.0, alias="rate429")
    malformed_rate: float = Field(default=0.0, alias="malformedRate")
    tool_unavailable_steps: int = Field(default=0, alias="toolUnavailableSteps")
    inj_seed: str | None = Field(default=None, alias="injSeed")
    ctx_bytes: int = Field(default=0, alias="ctxBytes")

    @field_validator("latency_rate", "http_500_rate", "rate_429", "malformed_rate", mode="before")
    @classmethod
    def _clamp_rates(cls, value: Any) -> float:
        return _clamp_rate(value)

    @field_validator("latency_ms", "tool_unavailable_steps", "ctx_bytes", mode="before")
    @classmethod
    def _clamp_counts(cls, value: Any) -> int:
        return _non_negative_int(value)

    @field_validator("inj_seed", mode="before")
    @classmethod
    def _blank_seed(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value)
        return text if text.strip() else None

    @property
    def is_quiet(self) -> bool:
        """True when no fault of any kind is configured."""
        return not (
            (self.latency_ms > 0 and self.latency_rate > 0)
            or self.http_500_rate > 0
            or self.rate_429 > 0
            or self.malformed_rate > 0
            or self.tool_unavailable_steps > 0
            or self.inj_seed
            or self.ctx_bytes > 0
        )


class TripwireConfig(BaseModel):
    """Retry, backoff and loop-arrest policy for guarded steps."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    on: bool = True
    max_retries: int = Field(default=3, alias="maxRetries")
    backoff_base: float = Field(default=250, alias="backoffBase", description="Base delay in ms")
    backoff_factor: float = Field(default=2.0, alias="backoffFactor")
    jitter: float = 0.2
    loop_n: int = Field(default=3, alias="loopN", description="Max attempts per step key")
    fallback: str | None = "use_cached_summary"

    @field_validator("max_retries", mode="before")
    @classmethod
    def _clamp_retries(cls, value: Any) -> int:
        return _non_negative_int(value)

    @field_validator("loop_n", mode="before")
    @classmethod
    def _clamp_loop_n(cls, value: Any) -> int:
        return max(1, _non_negative_int(value))

    @field_validator("backoff_base", mode="before")
    @classmethod
    def _clamp_base(cls, value: Any) -> float:
        try:
            base = float(value)
        except (TypeError, ValueError):
            return 0.0
        return base if math.isfinite(base) and base > 0 else 0.0

    @field_validator("backoff_factor", mode="before")
    @classmethod
    def _finite_factor(cls, value: Any) -> float:
        try:
            factor = float(value)
        except (TypeError, ValueError):
            return 0.0
        return factor if math.isfinite(factor) else 0.0

    @field_validator("jitter", mode="before")
    @classmethod
    def _clamp_jitter(cls, value: Any) -> float:
        return _clamp_rate(value)

    @field_validator("fallback", mode="before")
    @classmethod
    def _none_fallback(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text or text.lower() == "none":
            return None
        return text


class RunConfig(BaseModel):
    """A complete scenario run description, as stored in a YAML file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    scenario: str = "fetch"
    seed: str = "1337"
    chaos: bool = True
    faults: FaultConfig = Field(default_factory=FaultConfig)
    tripwire: TripwireConfig = Field(default_factory=TripwireConfig)
    mttr_target: float = 30.0
    min_score: int = 0

    @field_validator("seed", mode="before")
    @classmethod
    def _seed_as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("min_score", mode="before")
    @classmethod
    def _clamp_min_score(cls, value: Any) -> int:
        return clamp_min_score(value)


def load_run_config(path: str | Path) -> RunConfig:
    """Load a run configuration from a YAML file.

    Args:
        path: Path to the YAML document.

    Returns:
        The validated (and clamped) RunConfig.
    """
    raw: dict[str, Any] = yaml.safe_load(Path(path).read_text()) or {}
    return RunConfig.model_validate(raw)
