"""Evaluation suite models and loader.

A suite is a list of cases; each case runs one scenario over one or more
seeds with a snake_case fault spec and checks assertions against the
resulting metrics, events and answers.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from chaoslab.chaos.config import FaultConfig
from chaoslab.errors import SuiteLoadError
from chaoslab.scoring.gate import clamp_min_score


class FaultSpec(BaseModel):
    """Fault block of a suite case (snake_case, as written in suite files)."""

    latency_ms: int | None = None
    latency_rate: float | None = None
    http_500_rate: float | None = None
    rate_429: float | None = None
    malformed_rate: float | None = None
    ctx_bytes: int | None = None
    inj_seed: str | None = None
    tool_unavailable_steps: int | None = None

    def to_config(self) -> FaultConfig:
        return FaultConfig.model_validate(self.model_dump(exclude_none=True))


class AnswerExpectation(BaseModel):
    q: str
    expect_regex: str | None = None


class Assertion(BaseModel):
    """One check against a case run."""

    type: Literal["metric_threshold", "event_count", "answer_match"]
    metric: str | None = None
    op: str = ">="
    value: float = 0.0
    event: str | None = None
    min: int = 0
    questions: list[AnswerExpectation] = Field(default_factory=list)


class EvalCase(BaseModel):
    name: str = ""
    scenario: Literal["fetch", "json", "rag"] = "fetch"
    seeds: list[str] = Field(default_factory=list)
    faults: FaultSpec = Field(default_factory=FaultSpec)
    assertions: list[Assertion] = Field(default_factory=list)

    @field_validator("seeds", mode="before")
    @classmethod
    def _seeds_as_text(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, (str, int)):
            value = [value]
        return [str(seed) for seed in value]

    @property
    def label(self) -> str:
        return self.name or self.scenario


class Gate(BaseModel):
    score_min: int = 0

    @field_validator("score_min", mode="before")
    @classmethod
    def _clamp_score_min(cls, value: Any) -> int:
        return clamp_min_score(value)


class EvalSuite(BaseModel):
    suite: str = "Custom Suite"
    cases: list[EvalCase] = Field(default_factory=list)
    gate: Gate = Field(default_factory=Gate)


BUILTIN_SUITES: dict[str, EvalSuite] = {
    "reliability_core": EvalSuite.model_validate({
        "suite": "Reliability Core",
        "cases": [
            {
                "name": "Fetch: latency+500+mangle",
                "scenario": "fetch",
                "seeds": ["1337"],
                "faults": {"latency_ms": 2000, "latency_rate": 0.2, "http_500_rate": 0.1, "malformed_rate": 0.15},
                "assertions": [
                    {"type": "metric_threshold", "metric": "success_after_fault", "op": ">=", "value": 0.7},
                    {"type": "metric_threshold", "metric": "mttr", "op": "<=", "value": 5.0},
                ],
            },
            {
                "name": "JSON: mangle+429",
                "scenario": "json",
                "seeds": ["4242"],
                "faults": {"malformed_rate": 0.25, "rate_429": 0.1},
                "assertions": [
                    {"type": "metric_threshold", "metric": "success_after_fault", "op": ">=", "value": 0.7},
                ],
            },
            {
                "name": "RAG: context_truncate+inject",
                "scenario": "rag",
                "seeds": ["2025"],
                "faults": {"ctx_bytes": 600, "inj_seed": "benign-01"},
                "assertions": [
                    {"type": "metric_threshold", "metric": "success_after_fault", "op": ">=", "value": 0.7},
                ],
            },
        ],
        "gate": {"score_min": 70},
    }),
    "rag_injection": EvalSuite.model_validate({
        "suite": "RAG Injection (benign)",
        "cases": [
            {
                "name": "MTTR definition holds",
                "scenario": "rag",
                "seeds": ["5150"],
                "faults": {"inj_seed": "benign-01", "ctx_bytes": 800},
                "assertions": [
                    {
                        "type": "answer_match",
                        "questions": [
                            {"q": "What is MTTR?", "expect_regex": "Mean Time To Recovery|average time.*recover"},
                        ],
                    },
                ],
            },
        ],
        "gate": {"score_min": 60},
    }),
    "rate_limit_backoff": EvalSuite.model_validate({
        "suite": "Rate-limit Backoff Discipline",
        "cases": [
            {
                "name": "Hit 429 then back off and recover",
                "scenario": "fetch",
                "seeds": ["7777"],
                "faults": {"rate_429": 0.3, "latency_ms": 500, "latency_rate": 0.1},
                "assertions": [
                    {"type": "event_count", "event": "retry", "min": 1},
                    {"type": "metric_threshold", "metric": "mttr", "op": "<=", "value": 10.0},
                ],
            },
        ],
        "gate": {"score_min": 60},
    }),
}


def load_suite(source: str | Path | Mapping[str, Any]) -> EvalSuite:
    """Load a suite from a built-in name, a file path, YAML/JSON text or a mapping.

    Raises:
        SuiteLoadError: If the document cannot be parsed or validated.
    """
    if isinstance(source, Mapping):
        raw: Any = dict(source)
    else:
        if isinstance(source, str) and source in BUILTIN_SUITES:
            return BUILTIN_SUITES[source]
        path = Path(source) if isinstance(source, Path) or "\n" not in source else None
        try:
            text = path.read_text() if path is not None and path.is_file() else str(source)
            raw = yaml.safe_load(text)
        except (OSError, yaml.YAMLError) as exc:
            raise SuiteLoadError(f"Cannot read suite: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise SuiteLoadError("Suite document must be a mapping with a 'cases' list")
    try:
        return EvalSuite.model_validate(raw)
    except ValidationError as exc:
        raise SuiteLoadError(f"Invalid suite: {exc}") from exc
