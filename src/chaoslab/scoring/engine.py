"""Resilience scoring — turns an execution trace into a 0-100 score.

Score composition (faults present)::

    score = 60 * success_after_fault
          + 25 * (1 - min(1, mttr_s / mttr_target))
          + 15 * idempotency
          - min(10, 2 * retries)

clamped to [0, 100] and rounded. A trace without any fault row scores 100.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from chaoslab.trace import StepStatus, TraceRow

ACTION_LOOP_ARREST = "loop_arrest"
ACTION_FALLBACK = "fallback"


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the score blend."""

    success: float = 60.0
    mttr: float = 25.0
    idempotency: float = 15.0
    retry_penalty: float = 2.0
    retry_penalty_cap: float = 10.0


DEFAULT_WEIGHTS = ScoreWeights()


@dataclass(frozen=True)
class ScoreResult:
    """Snapshot of resilience metrics for one trace."""

    score: int = 100
    success_after_fault: float = 1.0
    mttr_s: float = 0.0
    idempotency: float = 1.0
    retries: int = 0
    faults: int = 0
    recovered: int = 0
    loop_arrests: int = 0
    rollbacks: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "success_after_fault": self.success_after_fault,
            "mttr_s": self.mttr_s,
            "idempotency": self.idempotency,
            "retries": self.retries,
            "faults": self.faults,
            "recovered": self.recovered,
            "loop_arrests": self.loop_arrests,
            "rollbacks": self.rollbacks,
        }


def _recovery_ms(rows: list[TraceRow], index: int) -> float | None:
    """Summed duration from a fault row to the row that resolves its step.

    Returns None when the step never reaches ``ok`` or ``recovered``.
    """
    fault_row = rows[index]
    total = 0.0
    for row in rows[index:]:
        if row.tool != fault_row.tool:
            continue
        total += row.duration_ms
        if row.is_resolved:
            return total
    return None


def _idempotency(rows: list[TraceRow]) -> float:
    """Share of retried tools whose outcomes never flip back to failure."""
    by_tool: dict[str, list[TraceRow]] = defaultdict(list)
    for row in rows:
        by_tool[row.tool].append(row)

    repeated = [tool_rows for tool_rows in by_tool.values() if any(row.is_retry for row in tool_rows)]
    if not repeated:
        return 1.0

    inconsistent = 0
    for tool_rows in repeated:
        resolved = False
        for row in tool_rows:
            if row.is_resolved:
                resolved = True
            elif resolved and row.status is StepStatus.FAILED:
                inconsistent += 1
                break
    return 1.0 - inconsistent / len(repeated)


def compute_score(
    rows: Iterable[TraceRow | Mapping[str, Any]],
    mttr_target: float = 30.0,
    *,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> ScoreResult:
    """Score a trace.

    Args:
        rows: Trace rows, as :class:`TraceRow` or plain mappings.
        mttr_target: Recovery time (seconds) at which the MTTR component
            is fully spent.
        weights: Blend weights.

    Returns:
        A fresh :class:`ScoreResult`.
    """
    trace = [TraceRow.coerce(row) for row in rows]

    retries = sum(1 for row in trace if row.is_retry)
    loop_arrests = sum(1 for row in trace if row.action == ACTION_LOOP_ARREST)
    rollbacks = sum(1 for row in trace if row.action == ACTION_FALLBACK)
    idempotency = _idempotency(trace)

    fault_indexes = [idx for idx, row in enumerate(trace) if row.fault]
    if not fault_indexes:
        return ScoreResult(
            retries=retries,
            idempotency=idempotency,
            loop_arrests=loop_arrests,
            rollbacks=rollbacks,
        )

    recovery_times = [
        ms for ms in (_recovery_ms(trace, idx) for idx in fault_indexes) if ms is not None
    ]
    success = len(recovery_times) / len(fault_indexes)
    mttr_s = sum(recovery_times) / len(recovery_times) / 1000 if recovery_times else 0.0

    if mttr_target > 0:
        mttr_norm = min(1.0, mttr_s / mttr_target)
    else:
        mttr_norm = 1.0 if mttr_s > 0 else 0.0

    penalty = min(weights.retry_penalty_cap, weights.retry_penalty * retries)
    raw = (
        weights.success * success
        + weights.mttr * (1 - mttr_norm)
        + weights.idempotency * idempotency
        - penalty
    )
    score = int(round(min(100.0, max(0.0, raw))))

    return ScoreResult(
        score=score,
        success_after_fault=success,
        mttr_s=mttr_s,
        idempotency=idempotency,
        retries=retries,
        faults=len(fault_indexes),
        recovered=len(recovery_times),
        loop_arrests=loop_arrests,
        rollbacks=rollbacks,
    )
