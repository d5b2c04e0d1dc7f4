"""Scenario runner — executes one scenario and scores its trace."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from chaoslab.chaos.config import FaultConfig, TripwireConfig
from chaoslab.chaos.export import to_chaos_yaml
from chaoslab.scenarios.base import ScenarioContext
from chaoslab.scenarios.fetch import run_fetch
from chaoslab.scenarios.json_extract import run_json
from chaoslab.scenarios.rag import run_rag
from chaoslab.scoring.engine import ScoreResult, compute_score
from chaoslab.tracing.spans import finish_scenario_span, get_tracer, record_row, start_scenario_span

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from opentelemetry.trace import Tracer

    from chaoslab.trace import TraceRow

logger = logging.getLogger(__name__)

SCENARIOS: dict[str, Callable[[ScenarioContext], Awaitable[dict[str, Any]]]] = {
    "fetch": run_fetch,
    "json": run_json,
    "rag": run_rag,
}

SCENARIO_DESCRIPTIONS: dict[str, str] = {
    "fetch": "Fetch a public HTML page, extract structure, and summarize.",
    "json": "Fetch JSON, handle malformed payloads, and render a table.",
    "rag": "Answer two questions over a bundled Markdown doc (safe, offline).",
}

MOCK_BASE_URL = "http://chaoslab.local"


@dataclass
class ScenarioRun:
    """Result of one scenario run."""

    scenario: str
    seed: str
    chaos: bool
    rows: tuple[TraceRow, ...]
    metrics: ScoreResult
    faults: FaultConfig
    tripwire: TripwireConfig
    events: list[dict[str, Any]] = field(default_factory=list)
    answers: dict[str, str] = field(default_factory=dict)
    output: dict[str, Any] = field(default_factory=dict)

    @property
    def score(self) -> int:
        return self.metrics.score

    @property
    def yaml(self) -> str:
        """Repro document for this run."""
        return to_chaos_yaml(self.seed, self.faults, self.tripwire.loop_n, self.tripwire)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario,
            "seed": self.seed,
            "chaos": self.chaos,
            "rows": [row.to_dict() for row in self.rows],
            "metrics": self.metrics.to_dict(),
            "events": list(self.events),
            "answers": dict(self.answers),
        }


def mock_client() -> httpx.AsyncClient:
    """An HTTP client wired to the in-process mock agent server."""
    from chaoslab.api.server import create_app

    transport = httpx.ASGITransport(app=create_app())
    return httpx.AsyncClient(transport=transport, base_url=MOCK_BASE_URL)


async def run_scenario(
    scenario: str,
    seed: str = "1337",
    chaos: bool = True,
    faults: FaultConfig | None = None,
    tripwire: TripwireConfig | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    base_url: str | None = None,
    mttr_target: float = 30.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    progress: Callable[[int, str], Any] | None = None,
    tracer: Tracer | None = None,
) -> ScenarioRun:
    """Run a named scenario and score it.

    Args:
        scenario: One of ``fetch``, ``json`` or ``rag``.
        seed: Run seed; identical seeds reproduce identical faults.
        chaos: False runs the baseline with every injector bypassed.
        faults: Fault toggles (ignored for baseline runs).
        tripwire: Retry policy.
        client: HTTP client to use. When omitted and ``base_url`` is None,
            the run talks to the in-process mock server.
        base_url: Base URL of the agent's sources.
        mttr_target: MTTR target in seconds for scoring.
        sleep: Coroutine function for latency and backoff waits.
        progress: Observer called with ``(percent, message)``.
        tracer: OpenTelemetry tracer; defaults to the global ``chaoslab`` one.

    Returns:
        The scored :class:`ScenarioRun`. Injected and transport faults never
        raise.
    """
    if scenario not in SCENARIOS:
        raise ValueError(f"Unknown scenario '{scenario}'. Choose from: {', '.join(sorted(SCENARIOS))}")

    faults = faults or FaultConfig()
    tripwire = tripwire or TripwireConfig()

    owned: httpx.AsyncClient | None = None
    if client is None:
        if base_url is None:
            owned = mock_client()
            base_url = MOCK_BASE_URL
        else:
            owned = httpx.AsyncClient(timeout=10.0)
        client = owned
    base_url = base_url if base_url is not None else str(client.base_url) or MOCK_BASE_URL

    ctx = ScenarioContext(
        seed=seed,
        chaos=chaos,
        faults=faults,
        tripwire=tripwire,
        client=client,
        base_url=base_url,
        sleep=sleep,
        progress=progress,
    )
    span = start_scenario_span(tracer or get_tracer(), scenario, seed, chaos)
    logger.info("Running %s scenario (seed=%s, chaos=%s)", scenario, seed, chaos)
    try:
        output = await SCENARIOS[scenario](ctx)
    except Exception:
        span.end()
        raise
    finally:
        if owned is not None:
            await owned.aclose()

    rows = ctx.trace.rows
    metrics = compute_score(rows, mttr_target)
    for row in rows:
        record_row(span, row)
    finish_scenario_span(span, metrics.score)
    ctx.report(100, "Completed")
    logger.info("Scenario %s finished with score %d", scenario, metrics.score)

    return ScenarioRun(
        scenario=scenario,
        seed=seed,
        chaos=chaos,
        rows=rows,
        metrics=metrics,
        faults=faults,
        tripwire=tripwire,
        events=ctx.events,
        answers=dict(ctx.answers),
        output=output,
    )
