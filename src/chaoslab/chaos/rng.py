"""Deterministic randomness: seeded streams, fault decisions and backoff.

The generator reproduces the legacy browser implementation exactly: the
seed is folded into 32 bits with the classic ``h * 31 + unit`` string hash
over UTF-16 code units, and each draw advances a mulberry32 state. Saved
repro cases therefore replay the same fault decisions.
"""

from __future__ import annotations

import math
from typing import Callable

_MASK32 = 0xFFFFFFFF
_GOLDEN = 0x6D2B79F5
_TWO_32 = 4294967296.0

Rand = Callable[[], float]


def _hash_seed(seed: str) -> int:
    h = 0
    units = seed.encode("utf-16-le", "surrogatepass")
    for idx in range(0, len(units), 2):
        unit = units[idx] | (units[idx + 1] << 8)
        h = (h * 31 + unit) & _MASK32
    return h


def seeded(seed: str) -> Rand:
    """Return a generator yielding a repeatable stream of floats in [0, 1).

    The stream is a pure function of ``seed`` and the number of draws made
    so far. Every call to ``seeded`` returns an independent generator.
    """
    state = _hash_seed(str(seed))

    def rand() -> float:
        nonlocal state
        state = (state + _GOLDEN) & _MASK32
        t = state
        x = ((t ^ (t >> 15)) * (1 | t)) & _MASK32
        x = (x ^ ((x + (((x ^ (x >> 7)) * (61 | x)) & _MASK32)) & _MASK32)) & _MASK32
        return ((x ^ (x >> 14)) & _MASK32) / _TWO_32

    return rand


def derive_seed(seed: str, target: str, attempt: int | str, channel: str | None = None) -> str:
    """Build the per-call seed namespace ``seed:target:attempt[:channel]``.

    The format is part of the repro contract: changing it changes which
    faults a saved seed produces.
    """
    derived = f"{seed}:{target}:{attempt}"
    if channel:
        derived = f"{derived}:{channel}"
    return derived


def should(rate: float, rand: Rand) -> bool:
    """Decide whether a fault with probability ``rate`` fires on this draw.

    ``rate <= 0`` never fires and consumes no draw. Any positive rate
    consumes exactly one draw so that decision streams stay aligned.
    """
    if not rate > 0:
        return False
    draw = rand()
    return rate >= 1 or draw < rate


def jittered_delay(
    base: float,
    factor: float,
    attempt: int,
    jitter: float,
    rand: Rand,
) -> int:
    """Exponential backoff with multiplicative jitter, in whole milliseconds.

    ``attempt`` is 0-indexed: the first retry waits roughly ``base``.
    The result is never negative.
    """
    attempt = max(0, int(attempt))
    jitter = 0.0 if math.isnan(jitter) else min(max(jitter, 0.0), 1.0)
    try:
        nominal = base * math.pow(factor, attempt)
    except (OverflowError, ValueError):
        nominal = 0.0
    scaled = nominal * (1 + (rand() * 2 - 1) * jitter)
    if not math.isfinite(scaled) or scaled <= 0:
        return 0
    return int(math.floor(scaled))
