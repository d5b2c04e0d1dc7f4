"""
Chaos Testing Example — score an agent pipeline's recovery from faults.

Runs the bundled fetch scenario twice against the in-process mock server,
once as a baseline and once with HTTP 500s, latency spikes and rate limits
injected, then prints the score delta and a chaos.yml repro document.

Run:
    pip install -e .
    python examples/chaos_test.py
"""

import asyncio

from chaoslab import FaultConfig, TripwireConfig, run_scenario
from chaoslab.reporting import run_report_markdown
from chaoslab.scoring.gate import check_gate

SEED = "1337"

faults = FaultConfig(
    latency_ms=2000,
    latency_rate=0.2,
    http_500_rate=0.3,
    rate_429=0.1,
)
tripwire = TripwireConfig(max_retries=3, loop_n=3, fallback="use_cached_summary")


async def main() -> None:
    print("Chaos Testing Example")
    print("=" * 60)
    print()

    baseline = await run_scenario("fetch", SEED, chaos=False, faults=faults, tripwire=tripwire)
    run = await run_scenario("fetch", SEED, chaos=True, faults=faults, tripwire=tripwire)

    print(f"Baseline score: {baseline.score}")
    print(f"Chaos score:    {run.score}")
    print()

    print("Fault timeline:")
    for row in run.rows:
        print(f"  #{row.i} {row.tool:<20} {row.status.value:<10} {row.fault or '-':<16} {row.action or ''}")
    print()

    gate = check_gate(run.score, min_score=70)
    if gate.passed:
        print("✅ Agent recovered within the score gate")
    else:
        print(f"🛑 {gate.message}")
    print()

    print(run_report_markdown(run, baseline, profile="example"))


if __name__ == "__main__":
    asyncio.run(main())
