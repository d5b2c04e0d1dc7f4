"""Chaos Lab — deterministic fault injection and recovery scoring for agents.

Chaos Lab wraps the I/O of a small agent pipeline with seeded fault
injectors, guards each step with a retry/backoff/loop-arrest tripwire, and
scores the resulting trace:

Core concepts
-------------
* **Injectors** — ``chaos_fetch``, ``chaos_json`` and ``chaos_rag_doc``
  decide latency spikes, synthetic 500/429 responses, malformed JSON and
  context truncation from a seed, so the same seed always produces the
  same faults.  They live in ``chaoslab.chaos``.

* **Tripwire** — ``with_tripwire`` retries a failing step with jittered
  exponential backoff and arrests it once it hits its attempt ceiling.

* **Score** — ``compute_score`` blends success-after-fault, MTTR and
  idempotency into a 0-100 resilience score, and ``to_chaos_yaml``
  exports the run's configuration for replay.

Quick start::

    import asyncio
    from chaoslab import FaultConfig, run_scenario

    run = asyncio.run(run_scenario("fetch", seed="1337",
                                   faults=FaultConfig(http_500_rate=0.3)))
    print(run.score)
    print(run.yaml)
"""

from chaoslab.chaos.config import FaultConfig, RunConfig, TripwireConfig
from chaoslab.chaos.export import to_chaos_yaml
from chaoslab.chaos.tripwire import with_tripwire
from chaoslab.scenarios.runner import ScenarioRun, run_scenario
from chaoslab.scoring.engine import ScoreResult, compute_score
from chaoslab.trace import Trace, TraceRow

__all__ = [
    "FaultConfig",
    "RunConfig",
    "ScenarioRun",
    "ScoreResult",
    "Trace",
    "TraceRow",
    "TripwireConfig",
    "compute_score",
    "run_scenario",
    "to_chaos_yaml",
    "with_tripwire",
]

__version__ = "0.1.0"
