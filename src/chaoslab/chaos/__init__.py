"""Chaos core — deterministic fault injection and the tripwire."""

from .config import FaultConfig, RunConfig, TripwireConfig, load_run_config
from .export import ReproCase, parse_chaos_yaml, to_chaos_yaml
from .injectors import ChaosResponse, chaos_fetch, chaos_json, chaos_rag_doc
from .rng import derive_seed, jittered_delay, seeded, should
from .tripwire import AttemptLedger, TripwireOutcome, TripwireState, with_tripwire

__all__ = [
    "FaultConfig", "RunConfig", "TripwireConfig", "load_run_config",
    "ReproCase", "parse_chaos_yaml", "to_chaos_yaml",
    "ChaosResponse", "chaos_fetch", "chaos_json", "chaos_rag_doc",
    "derive_seed", "jittered_delay", "seeded", "should",
    "AttemptLedger", "TripwireOutcome", "TripwireState", "with_tripwire",
]
