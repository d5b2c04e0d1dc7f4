"""Minimum-score gate for CI-style pass/fail decisions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GateResult:
    passed: bool
    score: int
    min_score: int
    message: str = ""


def clamp_min_score(value: Any) -> int:
    """Coerce a configured minimum score into ``[0, 100]``; junk becomes 0."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(max(0, min(100, number)))


def check_gate(score: int, min_score: float = 0) -> GateResult:
    """Compare a score against a minimum; a minimum of 0 disables the gate."""
    threshold = clamp_min_score(min_score)
    if threshold and score < threshold:
        return GateResult(
            passed=False,
            score=score,
            min_score=threshold,
            message=f"Score {score} < {threshold}. Check trace and retry.",
        )
    return GateResult(passed=True, score=score, min_score=threshold)
