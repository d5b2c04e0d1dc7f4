"""Evaluation suite runner."""

from __future__ import annotations

import asyncio
import logging
import operator
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import httpx

from chaoslab.chaos.config import TripwireConfig
from chaoslab.scenarios.runner import MOCK_BASE_URL, mock_client, run_scenario

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from chaoslab.evals.suite import Assertion, EvalCase, EvalSuite
    from chaoslab.scenarios.runner import ScenarioRun

logger = logging.getLogger(__name__)

_OPS: dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
}

_METRIC_ALIASES = {"mttr": "mttr_s"}


@dataclass
class AssertionResult:
    kind: str
    passed: bool
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "pass": self.passed, **self.details}


@dataclass
class SeedRun:
    seed: str
    run: ScenarioRun
    baseline: ScenarioRun | None
    assertions: list[AssertionResult]

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.assertions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "metrics": self.run.metrics.to_dict(),
            "baseline": self.baseline.metrics.to_dict() if self.baseline else None,
            "assertions": [result.to_dict() for result in self.assertions],
            "pass": self.passed,
        }


@dataclass
class CaseReport:
    name: str
    scenario: str
    runs: list[SeedRun]

    @property
    def passed(self) -> bool:
        return all(run.passed for run in self.runs)

    @property
    def score_avg(self) -> int:
        if not self.runs:
            return 0
        return round(sum(run.run.score for run in self.runs) / len(self.runs))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "scenario": self.scenario,
            "runs": [run.to_dict() for run in self.runs],
            "pass": self.passed,
            "scoreAvg": self.score_avg,
        }


@dataclass
class SuiteReport:
    suite: str
    started: str
    cases: list[CaseReport] = field(default_factory=list)
    score_min: int = 0
    finished: str = ""

    @property
    def overall_score(self) -> int:
        if not self.cases:
            return 0
        return round(sum(case.score_avg for case in self.cases) / len(self.cases))

    @property
    def passed_gate(self) -> bool:
        return self.overall_score >= self.score_min

    def to_dict(self) -> dict[str, Any]:
        return {
            "suite": self.suite,
            "started": self.started,
            "finished": self.finished,
            "cases": [case.to_dict() for case in self.cases],
            "overall_score": self.overall_score,
            "passed_gate": self.passed_gate,
        }


def evaluate_assertions(assertions: list[Assertion], run: ScenarioRun) -> list[AssertionResult]:
    """Check a case's assertions against one scenario run."""
    metrics = run.metrics.to_dict()
    results: list[AssertionResult] = []
    for check in assertions:
        if check.type == "metric_threshold":
            name = check.metric or ""
            got = metrics.get(_METRIC_ALIASES.get(name, name))
            compare = _OPS.get(check.op)
            passed = isinstance(got, (int, float)) and compare is not None and compare(got, check.value)
            results.append(AssertionResult(
                "metric", passed, {"metric": name, "op": check.op, "target": check.value, "got": got},
            ))
        elif check.type == "event_count":
            wanted = (check.event or "").lower()
            count = sum(1 for event in run.events if str(event.get("type", "")).lower() == wanted)
            results.append(AssertionResult(
                "events", count >= check.min, {"event": check.event, "count": count, "min": check.min},
            ))
        elif check.type == "answer_match":
            for expectation in check.questions:
                answer = run.answers.get(expectation.q, "")
                passed = bool(answer)
                if expectation.expect_regex and answer:
                    try:
                        passed = re.search(expectation.expect_regex, answer, re.I) is not None
                    except re.error:
                        logger.warning("Invalid expect_regex %r; treating as pass", expectation.expect_regex)
                        passed = True
                results.append(AssertionResult(
                    "answer", passed, {"question": expectation.q, "excerpt": answer[:160]},
                ))
    return results


async def _run_seed(
    case: EvalCase,
    seed: str,
    include_baseline: bool,
    client: httpx.AsyncClient,
    base_url: str | None,
    tripwire: TripwireConfig,
    sleep: Callable[[float], Awaitable[Any]],
    mttr_target: float,
) -> SeedRun:
    faults = case.faults.to_config()
    baseline = None
    if include_baseline:
        baseline = await run_scenario(
            case.scenario, seed, False, faults, tripwire, client=client, base_url=base_url,
            sleep=sleep, mttr_target=mttr_target,
        )
    run = await run_scenario(
        case.scenario, seed, True, faults, tripwire, client=client, base_url=base_url,
        sleep=sleep, mttr_target=mttr_target,
    )
    logger.info(
        "Case %s seed=%s score=%d mttr=%.2fs success_after_fault=%.2f",
        case.label, seed, run.score, run.metrics.mttr_s, run.metrics.success_after_fault,
    )
    return SeedRun(seed, run, baseline, evaluate_assertions(case.assertions, run))


async def run_suite(
    suite: EvalSuite,
    include_baseline: bool = False,
    *,
    client: httpx.AsyncClient | None = None,
    base_url: str | None = None,
    tripwire: TripwireConfig | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    mttr_target: float = 30.0,
) -> SuiteReport:
    """Run every case of ``suite`` and gate on its average score.

    Seeds of one case run concurrently; each run has its own context, trace
    and attempt ledger.
    """
    tripwire = tripwire or TripwireConfig()
    report = SuiteReport(
        suite=suite.suite,
        started=datetime.now(tz=timezone.utc).isoformat(),
        score_min=suite.gate.score_min,
    )

    owned: httpx.AsyncClient | None = None
    if client is None:
        if base_url is None:
            owned = mock_client()
            base_url = MOCK_BASE_URL
        else:
            owned = httpx.AsyncClient(timeout=10.0)
        client = owned

    try:
        for case in suite.cases:
            seeds = case.seeds or [str(int(datetime.now(tz=timezone.utc).timestamp() * 1000))]
            runs = await asyncio.gather(*(
                _run_seed(case, seed, include_baseline, client, base_url, tripwire, sleep, mttr_target)
                for seed in seeds
            ))
            report.cases.append(CaseReport(case.label, case.scenario, list(runs)))
    finally:
        if owned is not None:
            await owned.aclose()

    report.finished = datetime.now(tz=timezone.utc).isoformat()
    logger.info("Suite %s overall score %d (gate %d)", suite.suite, report.overall_score, report.score_min)
    return report


def suite_report_markdown(report: SuiteReport) -> str:
    """Render an evaluation report as Markdown."""
    lines = [
        f"# Evals Report — {report.suite}",
        "",
        f"Overall Score: **{report.overall_score}**  ",
        f"Gate: {'PASSED' if report.passed_gate else 'FAILED'}",
        "",
    ]
    for case in report.cases:
        lines.append(f"## {case.name} — {'PASS' if case.passed else 'FAIL'} (avg {case.score_avg})")
        lines.append("")
        lines.append("| Seed | Score | Success-after-fault | MTTR | Retries |")
        lines.append("|------|-------|---------------------|------|---------|")
        for seed_run in case.runs:
            m = seed_run.run.metrics
            lines.append(
                f"| {seed_run.seed} | {m.score} | {m.success_after_fault * 100:.0f}% "
                f"| {m.mttr_s:.2f}s | {m.retries} |"
            )
        failed = [a for seed_run in case.runs for a in seed_run.assertions if not a.passed]
        if failed:
            lines.append("")
            lines.append("Failed assertions:")
            lines.extend(f"- {a.kind}: {a.details}" for a in failed)
        lines.append("")
    return "\n".join(lines)
