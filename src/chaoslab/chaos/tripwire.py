"""Tripwire — bounded retries with jittered backoff and loop arrest.

Each guarded call runs ``execute()``, waits out a jittered backoff after a
failure and tries again, until it ends in one of three states:

    SUCCESS    — ``execute()`` returned a value.
    ARRESTED   — the step key hit its attempt ceiling, or raised an
                 explicit loop-arrest error.
    EXHAUSTED  — ``max_retries`` retries were spent without success.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from chaoslab.chaos.rng import derive_seed, jittered_delay, seeded

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from chaoslab.chaos.config import TripwireConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TripwireState(str, Enum):
    SUCCESS = "success"
    ARRESTED = "arrested"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class TripwireOutcome(Generic[T]):
    """Terminal result of one tripwire-guarded execution."""

    ok: bool
    value: T | None = None
    retries: int = 0
    arrested: bool = False
    state: TripwireState = TripwireState.SUCCESS
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "retries": self.retries,
            "arrested": self.arrested,
            "state": self.state.value,
            "error": self.error,
        }


class AttemptLedger:
    """Counts attempts per step key over one run.

    One ledger belongs to one run; concurrent runs each get their own.
    """

    def __init__(self) -> None:
        self._attempts: Counter[str] = Counter()

    def record(self, step_key: str) -> int:
        """Count one attempt and return the total for ``step_key``."""
        self._attempts[step_key] += 1
        return self._attempts[step_key]

    def attempts(self, step_key: str) -> int:
        return self._attempts[step_key]

    def snapshot(self) -> dict[str, int]:
        return dict(self._attempts)


def _is_loop_arrest(exc: BaseException) -> bool:
    return bool(getattr(exc, "loop_arrest", False)) or "loop_arrest" in str(exc)


def _notify(hook: Callable[..., Any] | None, *args: Any) -> None:
    """Call an observer hook; a failing hook must not alter control flow."""
    if hook is None:
        return
    try:
        hook(*args)
    except Exception:
        logger.warning("Tripwire observer hook %r raised", hook, exc_info=True)


async def with_tripwire(
    step_key: str,
    execute: Callable[[], Awaitable[T]],
    cfg: TripwireConfig,
    on_retry: Callable[[int, int], Any] | None = None,
    on_arrest: Callable[[], Any] | None = None,
    seed: str = "",
    *,
    ledger: AttemptLedger | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> TripwireOutcome[T]:
    """Run ``execute`` under retry, backoff and loop-arrest policy.

    Args:
        step_key: Logical step identity; attempt ceilings are tracked per key.
        execute: Zero-argument coroutine function performing one attempt.
        cfg: Tripwire policy. With ``cfg.on`` false, ``execute`` runs once.
        on_retry: Observer called with ``(attempt, delay_ms)`` before each wait.
        on_arrest: Observer called once when the step is arrested.
        seed: Run seed; backoff jitter is drawn from ``seed:tw:step_key``.
        ledger: Per-run attempt ledger. A fresh one is used when omitted.
        sleep: Coroutine function used for backoff waits, in seconds.

    Returns:
        The terminal :class:`TripwireOutcome`. Errors from ``execute`` never
        propagate.
    """
    if not cfg.on:
        try:
            value = await execute()
        except Exception as exc:
            logger.info("Step %s failed with tripwire disabled: %s", step_key, exc)
            return TripwireOutcome(ok=False, state=TripwireState.EXHAUSTED, error=str(exc))
        return TripwireOutcome(ok=True, value=value)

    ledger = ledger if ledger is not None else AttemptLedger()
    rand = seeded(derive_seed(seed, "tw", step_key))
    retries = 0

    while True:
        attempts = ledger.record(step_key)
        try:
            value = await execute()
        except Exception as exc:
            if _is_loop_arrest(exc) or attempts + 1 > cfg.loop_n:
                logger.warning(
                    "Loop arrest on %s after %d attempt(s) (loop_n=%d)", step_key, attempts, cfg.loop_n
                )
                _notify(on_arrest)
                return TripwireOutcome(
                    ok=False,
                    retries=retries,
                    arrested=True,
                    state=TripwireState.ARRESTED,
                    error=str(exc),
                )
            if retries >= cfg.max_retries:
                logger.info("Step %s exhausted %d retries: %s", step_key, retries, exc)
                return TripwireOutcome(
                    ok=False, retries=retries, state=TripwireState.EXHAUSTED, error=str(exc)
                )
            delay = jittered_delay(cfg.backoff_base, cfg.backoff_factor, retries, cfg.jitter, rand)
            logger.info("Retrying %s in %dms (retry %d): %s", step_key, delay, retries + 1, exc)
            _notify(on_retry, retries, delay)
            await sleep(delay / 1000)
            retries += 1
            continue
        if retries:
            logger.info("Step %s recovered after %d retries", step_key, retries)
        return TripwireOutcome(ok=True, value=value, retries=retries)
