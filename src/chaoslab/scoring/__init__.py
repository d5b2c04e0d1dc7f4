"""Resilience scoring for chaos runs."""

from .engine import DEFAULT_WEIGHTS, ScoreResult, ScoreWeights, compute_score
from .gate import GateResult, check_gate, clamp_min_score

__all__ = [
    "DEFAULT_WEIGHTS", "ScoreResult", "ScoreWeights", "compute_score",
    "GateResult", "check_gate", "clamp_min_score",
]
