"""Scenario plumbing — per-run context and the guarded step protocol."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from chaoslab.chaos.config import FaultConfig, TripwireConfig
from chaoslab.chaos.injectors import ChaosResponse, chaos_fetch, chaos_json
from chaoslab.chaos.tripwire import AttemptLedger, TripwireOutcome, with_tripwire
from chaoslab.errors import ToolUnavailableError
from chaoslab.trace import StepStatus, Trace

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUIET = FaultConfig()


@dataclass
class ScenarioContext:
    """Everything one scenario run needs; nothing is shared between runs."""

    seed: str
    chaos: bool
    faults: FaultConfig
    tripwire: TripwireConfig
    client: httpx.AsyncClient
    base_url: str
    trace: Trace = field(default_factory=Trace)
    ledger: AttemptLedger = field(default_factory=AttemptLedger)
    events: list[dict[str, Any]] = field(default_factory=list)
    answers: dict[str, str] = field(default_factory=dict)
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    progress: Callable[[int, str], Any] | None = None

    @property
    def active_faults(self) -> FaultConfig:
        """Fault toggles in effect; baseline runs inject nothing."""
        return self.faults if self.chaos else QUIET

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + path

    def report(self, pct: int, message: str) -> None:
        logger.debug("[%s] %d%% %s", self.seed, pct, message)
        if self.progress is not None:
            self.progress(pct, message)

    def record_event(self, kind: str, **data: Any) -> None:
        self.events.append({"type": kind, **data})

    async def fetch(self, path: str, attempt: int, *, quiet: bool = False) -> ChaosResponse:
        faults = QUIET if quiet else self.active_faults
        return await chaos_fetch(
            self.url(path), self.seed, faults, attempt, client=self.client, sleep=self.sleep
        )

    async def fetch_json(self, path: str, attempt: int) -> ChaosResponse:
        return await chaos_json(
            self.url(path), self.seed, self.active_faults, attempt, client=self.client, sleep=self.sleep
        )


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Value produced by a guarded step and how it was obtained."""

    value: T | None
    ok: bool
    outcome: TripwireOutcome[T]
    used_fallback: bool = False


async def run_guarded_step(
    ctx: ScenarioContext,
    tool: str,
    attempt_fn: Callable[[int], Awaitable[tuple[T, str | None]]],
    fallback: Callable[[], T] | None = None,
) -> StepResult[T]:
    """Run one fallible step under the tripwire, recording every attempt.

    ``attempt_fn(n)`` performs attempt ``n`` and returns ``(value, fault)``
    where ``fault`` tags a soft fault (the attempt succeeded anyway), or
    raises to fail the attempt. Raised exceptions may carry a ``fault`` tag.
    """
    attempt = 0
    mark = ctx.trace.start()
    first_fault: str | None = None
    last_fault: str | None = None

    async def execute() -> T:
        nonlocal attempt, mark, first_fault, last_fault
        n = attempt
        attempt += 1
        try:
            if ctx.chaos and n < ctx.faults.tool_unavailable_steps:
                raise ToolUnavailableError(tool, n)
            value, soft_fault = await attempt_fn(n)
        except Exception as exc:
            fault = getattr(exc, "fault", None) or "error"
            first_fault = first_fault or fault
            last_fault = fault
            ctx.trace.end(tool, mark, StepStatus.FAILED, fault=fault, action=f"retry({n})" if n else None)
            ctx.record_event("fault", tool=tool, fault=fault, attempt=n)
            mark = ctx.trace.start()
            raise

        if n == 0:
            ctx.trace.end(tool, mark, StepStatus.OK, fault=soft_fault)
            if soft_fault:
                ctx.record_event("fault", tool=tool, fault=soft_fault, attempt=n)
        else:
            ctx.trace.end(tool, mark, StepStatus.RECOVERED, fault=first_fault, action=f"retry({n})")
            ctx.record_event("recovered", tool=tool, action=f"retry({n})")
        return value

    def on_retry(retry: int, delay_ms: int) -> None:
        ctx.record_event("retry", tool=tool, attempts=retry + 1, backoff_ms=delay_ms)

    def on_arrest() -> None:
        ctx.record_event("loop_arrest", tool=tool)

    outcome: TripwireOutcome[T] = await with_tripwire(
        tool,
        execute,
        ctx.tripwire,
        on_retry,
        on_arrest,
        ctx.seed,
        ledger=ctx.ledger,
        sleep=ctx.sleep,
    )
    if outcome.ok:
        return StepResult(value=outcome.value, ok=True, outcome=outcome)

    if outcome.arrested:
        ctx.trace.end(tool, mark, StepStatus.FAILED, fault=last_fault, action="loop_arrest")
        mark = ctx.trace.start()

    if fallback is not None and ctx.tripwire.fallback:
        logger.info("Step %s falling back to %s", tool, ctx.tripwire.fallback)
        value = fallback()
        ctx.trace.end(
            tool, mark, StepStatus.RECOVERED, fault=last_fault, action="fallback", note=ctx.tripwire.fallback
        )
        ctx.record_event("fallback", tool=tool, to=ctx.tripwire.fallback)
        return StepResult(value=value, ok=True, outcome=outcome, used_fallback=True)

    logger.info("Step %s failed without fallback", tool)
    return StepResult(value=None, ok=False, outcome=outcome)


def run_local_step(ctx: ScenarioContext, tool: str, fn: Callable[[], T], *, note: str | None = None) -> T | None:
    """Run a local, non-network step and record it as ``ok`` or ``failed``."""
    mark = ctx.trace.start()
    try:
        value = fn()
    except (ValueError, TypeError, KeyError) as exc:
        logger.info("Step %s failed: %s", tool, exc)
        ctx.trace.end(tool, mark, StepStatus.FAILED, note=str(exc))
        return None
    ctx.trace.end(tool, mark, StepStatus.OK, note=note)
    return value
