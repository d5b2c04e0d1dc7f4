"""Run exports: trace JSON and the Markdown run report."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chaoslab.scenarios.runner import ScenarioRun


def trace_to_json(run: ScenarioRun, *, now: float | None = None) -> str:
    """Serialize a run as the ``trace.json`` document."""
    millis = int((now if now is not None else time.time()) * 1000)
    payload: dict[str, Any] = {
        "scenario": run.scenario,
        "run_id": f"acm-{millis}-{run.seed}",
        "steps": [row.to_dict() for row in run.rows],
        "metrics": run.metrics.to_dict(),
    }
    return json.dumps(payload, indent=2)


def run_report_markdown(
    run: ScenarioRun,
    baseline: ScenarioRun | None = None,
    profile: str = "default",
    *,
    now: datetime | None = None,
) -> str:
    """Render the Markdown REPORT for a run, optionally against a baseline."""
    stamp = (now or datetime.now(tz=timezone.utc)).isoformat()
    metrics = run.metrics
    lines = [
        "# Chaos Lab — REPORT",
        "",
        f"- Date: {stamp}",
        f"- Profile: {profile}",
        f"- Scenario: {run.scenario}",
        f"- Seed: {run.seed}",
        "",
    ]
    if baseline is not None:
        lines.append(f"**Baseline Score:** {baseline.score}")
    lines.append(f"**Chaos Score:** {metrics.score}")
    if baseline is not None:
        delta = metrics.score - baseline.score
        lines.append(f"**Δ Score:** {'+' if delta >= 0 else ''}{delta}")
    lines += [
        "",
        "## Metrics",
        f"- Success-after-fault: {metrics.success_after_fault * 100:.0f}%",
        f"- MTTR: {metrics.mttr_s:.2f}s",
        f"- Idempotency: {metrics.idempotency * 100:.0f}%",
        f"- Retries: {metrics.retries} · Loop arrests: {metrics.loop_arrests} · Rollbacks: {metrics.rollbacks}",
        "",
        "## Fault Timeline",
        "| # | Tool | Fault | Action | Duration | Result |",
        "|---|------|-------|--------|----------|--------|",
    ]
    for row in run.rows:
        lines.append(
            f"| {row.i} | {row.tool} | {row.fault or ''} | {row.action or ''} "
            f"| {row.duration_ms:.0f}ms | {row.status.value} |"
        )
    lines += ["", "## chaos.yml", "```yaml", run.yaml, "```"]
    return "\n".join(lines)
