"""Repro export — ``chaos.yml`` documents for sharing a seeded run.

The layout and key names (``mode: chaos_monkey``, ``probability:``,
``delay_ms:``, ``bytes:``, ``loop_arrest_n:``) match the files already saved
by earlier releases and must stay stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml

from chaoslab.chaos.config import FaultConfig, TripwireConfig


def _num(value: float | int) -> str:
    """Format a number the way the legacy exporter did (``1`` not ``1.0``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_chaos_yaml(
    seed: str,
    faults: FaultConfig,
    loop_n: int,
    tripwire: TripwireConfig | None = None,
) -> str:
    """Serialize a seed, fault toggles and tripwire policy to ``chaos.yml``."""
    tw = tripwire or TripwireConfig()
    fallback = tw.fallback or "none"
    lines = [
        "mode: chaos_monkey",
        f"seed: {seed}",
        "targets:",
        "  - name: web.fetch",
        "    faults:",
        "      - type: latency_spike",
        f"        probability: {_num(faults.latency_rate)}",
        f"        params: {{ delay_ms: {faults.latency_ms} }}",
        "      - type: http_500",
        f"        probability: {_num(faults.http_500_rate)}",
        "      - type: rate_limit_429",
        f"        probability: {_num(faults.rate_429)}",
        "  - name: extract_structured",
        "    faults:",
        "      - type: malformed_json",
        f"        probability: {_num(faults.malformed_rate)}",
        "  - name: memory.context",
        "    faults:",
        "      - type: context_truncate",
        f"        probability: {0.1 if faults.ctx_bytes > 0 else 0}",
        f"        params: {{ bytes: {faults.ctx_bytes} }}",
        "stop_conditions:",
        "  max_faults: 3",
        "  max_runtime_s: 120",
        "tripwire:",
        f"  loop_arrest_n: {loop_n}",
        (
            f"  backoff: {{ base_ms: {_num(tw.backoff_base)}, factor: {tw.backoff_factor}, "
            f"jitter: {_num(tw.jitter)}, max_retries: {tw.max_retries} }}"
        ),
        f'  fallback: "{fallback}"',
    ]
    return "\n".join(lines)


@dataclass(frozen=True)
class ReproCase:
    """A repro case read back from a ``chaos.yml`` document."""

    seed: str
    faults: FaultConfig
    loop_n: int
    tripwire: TripwireConfig


def _fault_entries(doc: dict[str, Any]) -> dict[str, dict[str, Any]]:
    entries: dict[str, dict[str, Any]] = {}
    for target in doc.get("targets") or []:
        for fault in (target or {}).get("faults") or []:
            if isinstance(fault, dict) and "type" in fault:
                entries[str(fault["type"])] = fault
    return entries


def parse_chaos_yaml(text: str) -> ReproCase:
    """Load a ``chaos.yml`` document produced by :func:`to_chaos_yaml`."""
    doc = yaml.safe_load(text) or {}
    if not isinstance(doc, dict):
        raise ValueError("chaos.yml must be a mapping")

    entries = _fault_entries(doc)

    def probability(kind: str) -> float:
        return (entries.get(kind) or {}).get("probability", 0) or 0

    def param(kind: str, key: str) -> Any:
        return ((entries.get(kind) or {}).get("params") or {}).get(key, 0)

    faults = FaultConfig(
        latency_ms=param("latency_spike", "delay_ms"),
        latency_rate=probability("latency_spike"),
        http_500_rate=probability("http_500"),
        rate_429=probability("rate_limit_429"),
        malformed_rate=probability("malformed_json"),
        ctx_bytes=param("context_truncate", "bytes"),
    )

    tw_doc = doc.get("tripwire") or {}
    backoff = tw_doc.get("backoff") or {}
    loop_n = tw_doc.get("loop_arrest_n", 3)
    tripwire = TripwireConfig(
        loop_n=loop_n,
        backoff_base=backoff.get("base_ms", 250),
        backoff_factor=backoff.get("factor", 2.0),
        jitter=backoff.get("jitter", 0.2),
        max_retries=backoff.get("max_retries", 3),
        fallback=tw_doc.get("fallback", "use_cached_summary"),
    )
    seed = doc.get("seed")
    return ReproCase(
        seed="" if seed is None else str(seed),
        faults=faults,
        loop_n=tripwire.loop_n,
        tripwire=tripwire,
    )
