"""Trace recorder — the ordered, append-only log of a scenario run."""

from __future__ import annotations

import math
import time
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class StepStatus(str, Enum):
    """Outcome of one attempted step."""

    OK = "ok"
    FAILED = "failed"
    RECOVERED = "recovered"


def _duration(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _status(value: Any) -> StepStatus:
    try:
        return StepStatus(value)
    except ValueError:
        return StepStatus.FAILED


@dataclass(frozen=True)
class TraceRow:
    """One record per attempted step."""

    tool: str
    status: StepStatus = StepStatus.OK
    i: int = 0
    duration_ms: float = 0.0
    fault: str | None = None
    action: str | None = None
    note: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status in (StepStatus.OK, StepStatus.RECOVERED)

    @property
    def is_retry(self) -> bool:
        return "retry" in (self.action or "")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "i": self.i,
            "tool": self.tool,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
        }
        for key in ("fault", "action", "note"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraceRow:
        """Build a row from a loosely-typed mapping (e.g. a saved trace.json)."""
        status = _status(data.get("status", "ok"))
        fault = data.get("fault")
        try:
            index = int(data.get("i", 0) or 0)
        except (TypeError, ValueError):
            index = 0
        return cls(
            tool=str(data.get("tool", "")),
            status=status,
            i=index,
            duration_ms=_duration(data.get("duration_ms")),
            fault=str(fault) if fault else None,
            action=data.get("action") or None,
            note=data.get("note") or None,
        )

    @classmethod
    def coerce(cls, row: TraceRow | Mapping[str, Any]) -> TraceRow:
        """Normalize a row or mapping; bad durations become 0, unknown statuses ``failed``."""
        if isinstance(row, TraceRow):
            return replace(row, status=_status(row.status), duration_ms=_duration(row.duration_ms))
        return cls.from_dict(row)


class Trace:
    """Append-only list of :class:`TraceRow` for one run.

    Usage::

        mark = trace.start()
        ...
        trace.end("web.fetch", mark, StepStatus.OK)
    """

    def __init__(self) -> None:
        self._rows: list[TraceRow] = []

    @staticmethod
    def start() -> float:
        """Return a monotonic timestamp to measure a step from."""
        return time.perf_counter()

    def end(
        self,
        tool: str,
        mark: float,
        status: StepStatus,
        *,
        fault: str | None = None,
        action: str | None = None,
        note: str | None = None,
    ) -> TraceRow:
        """Append a row for a step that started at ``mark``."""
        elapsed = round((time.perf_counter() - mark) * 1000, 3)
        row = TraceRow(
            tool=tool,
            status=status,
            i=len(self._rows) + 1,
            duration_ms=max(0.0, elapsed),
            fault=fault,
            action=action,
            note=note,
        )
        self._rows.append(row)
        return row

    def append(self, row: TraceRow) -> TraceRow:
        """Append an externally-built row, renumbering it to the next index."""
        numbered = replace(TraceRow.coerce(row), i=len(self._rows) + 1)
        self._rows.append(numbered)
        return numbered

    @property
    def rows(self) -> tuple[TraceRow, ...]:
        return tuple(self._rows)

    def to_list(self) -> list[dict[str, Any]]:
        return [row.to_dict() for row in self._rows]

    def __iter__(self) -> Iterator[TraceRow]:
        return iter(tuple(self._rows))

    def __len__(self) -> int:
        return len(self._rows)
