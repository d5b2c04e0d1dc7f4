"""
chaoslab CLI — run chaos scenarios and evaluation suites from the shell.

Usage:
    chaoslab run fetch --seed 1337 --http-500-rate 0.2
    chaoslab run rag --config run.yml --min-score 70
    chaoslab run fetch --repro chaos.yml --trace-out trace.json
    chaoslab eval reliability_core --baseline --markdown
    chaoslab config --seed 42 --latency-ms 2000 --latency-rate 0.2
    chaoslab version
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from chaoslab.chaos.config import FaultConfig, RunConfig, TripwireConfig, load_run_config
from chaoslab.chaos.export import parse_chaos_yaml, to_chaos_yaml
from chaoslab.errors import SuiteLoadError
from chaoslab.evals.runner import run_suite, suite_report_markdown
from chaoslab.evals.suite import BUILTIN_SUITES, load_suite
from chaoslab.reporting import run_report_markdown, trace_to_json
from chaoslab.scenarios.runner import SCENARIOS, run_scenario
from chaoslab.scoring.gate import check_gate

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

_FAULT_FLAGS = {
    "latency_ms": int,
    "latency_rate": float,
    "http_500_rate": float,
    "rate_429": float,
    "malformed_rate": float,
    "tool_unavailable_steps": int,
    "ctx_bytes": int,
    "inj_seed": str,
}


def _add_fault_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("faults")
    for name, kind in _FAULT_FLAGS.items():
        flag = "--" + name.replace("_", "-")
        group.add_argument(flag, dest=name, type=kind, default=None)


def _add_tripwire_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("tripwire")
    group.add_argument("--no-tripwire", action="store_true", help="Run each step once")
    group.add_argument("--max-retries", type=int, default=None)
    group.add_argument("--loop-n", type=int, default=None)
    group.add_argument("--fallback", default=None, help='Fallback name, or "none"')


def _merge_faults(parsed: argparse.Namespace, base: FaultConfig) -> FaultConfig:
    overrides = {name: getattr(parsed, name) for name in _FAULT_FLAGS if getattr(parsed, name) is not None}
    if not overrides:
        return base
    return FaultConfig.model_validate({**base.model_dump(), **overrides})


def _merge_tripwire(parsed: argparse.Namespace, base: TripwireConfig) -> TripwireConfig:
    overrides: Dict[str, Any] = {}
    if parsed.no_tripwire:
        overrides["on"] = False
    for name in ("max_retries", "loop_n", "fallback"):
        if getattr(parsed, name) is not None:
            overrides[name] = getattr(parsed, name)
    if not overrides:
        return base
    return TripwireConfig.model_validate({**base.model_dump(), **overrides})


def _cmd_run(parsed: argparse.Namespace) -> int:
    config = load_run_config(parsed.config) if parsed.config else RunConfig()
    scenario = parsed.scenario or config.scenario
    if scenario not in SCENARIOS:
        print(f"Unknown scenario '{scenario}'. Choose from: {', '.join(sorted(SCENARIOS))}", file=sys.stderr)
        return 1
    seed, faults, tripwire = config.seed, config.faults, config.tripwire
    if parsed.repro:
        try:
            repro = parse_chaos_yaml(Path(parsed.repro).read_text())
        except (OSError, ValueError, yaml.YAMLError) as exc:
            print(f"Cannot replay {parsed.repro}: {exc}", file=sys.stderr)
            return 1
        seed, faults, tripwire = repro.seed, repro.faults, repro.tripwire
    seed = parsed.seed if parsed.seed is not None else seed
    faults = _merge_faults(parsed, faults)
    tripwire = _merge_tripwire(parsed, tripwire)
    if config.chaos and faults.is_quiet:
        logger.info("No faults configured; the chaos run will match the baseline")
    mttr_target = parsed.mttr_target if parsed.mttr_target is not None else config.mttr_target
    min_score = parsed.min_score if parsed.min_score is not None else config.min_score

    async def _go() -> Any:
        baseline = None
        if parsed.baseline:
            baseline = await run_scenario(
                scenario, seed, False, faults, tripwire, base_url=parsed.base_url, mttr_target=mttr_target
            )
        run = await run_scenario(
            scenario, seed, config.chaos, faults, tripwire, base_url=parsed.base_url, mttr_target=mttr_target
        )
        return baseline, run

    baseline, run = asyncio.run(_go())
    gate = check_gate(run.score, min_score)
    if parsed.trace_out:
        Path(parsed.trace_out).write_text(trace_to_json(run))

    if parsed.json:
        payload = run.to_dict()
        payload["yaml"] = run.yaml
        if baseline is not None:
            payload["baseline"] = baseline.metrics.to_dict()
        payload["gate"] = {"passed": gate.passed, "min_score": gate.min_score, "message": gate.message}
        print(json.dumps(payload, indent=2))
    else:
        print(run_report_markdown(run, baseline))

    if not gate.passed:
        print(gate.message, file=sys.stderr)
        return 1
    return 0


def _cmd_eval(parsed: argparse.Namespace) -> int:
    try:
        suite = load_suite(parsed.suite)
    except SuiteLoadError as exc:
        print(f"{exc}. Built-in suites: {', '.join(sorted(BUILTIN_SUITES))}", file=sys.stderr)
        return 1

    report = asyncio.run(run_suite(suite, parsed.baseline, base_url=parsed.base_url))
    if parsed.markdown:
        print(suite_report_markdown(report))
    else:
        print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.passed_gate else 1


def _cmd_config(parsed: argparse.Namespace) -> int:
    faults = _merge_faults(parsed, FaultConfig())
    tripwire = _merge_tripwire(parsed, TripwireConfig())
    print(to_chaos_yaml(parsed.seed, faults, tripwire.loop_n, tripwire))
    return 0


def cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = argparse.ArgumentParser(
        prog="chaoslab",
        description="Deterministic fault injection and recovery scoring for agent pipelines",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command")

    # run subcommand
    run_parser = subparsers.add_parser("run", help="Run one scenario and score it")
    run_parser.add_argument("scenario", nargs="?", default=None, help="fetch, json or rag")
    run_parser.add_argument("--seed", default=None)
    run_parser.add_argument("--config", default=None, help="YAML run configuration")
    run_parser.add_argument("--repro", default=None, help="Replay the seed, faults and tripwire of a chaos.yml")
    run_parser.add_argument("--trace-out", default=None, help="Write trace.json to this path")
    run_parser.add_argument("--baseline", action="store_true", help="Also run without chaos")
    run_parser.add_argument("--base-url", default=None, help="Sources base URL (default: in-process mock)")
    run_parser.add_argument("--mttr-target", type=float, default=None)
    run_parser.add_argument("--min-score", type=int, default=None)
    run_parser.add_argument("--json", action="store_true", help="Print JSON instead of Markdown")
    _add_fault_args(run_parser)
    _add_tripwire_args(run_parser)

    # eval subcommand
    eval_parser = subparsers.add_parser("eval", help="Run an evaluation suite")
    eval_parser.add_argument("suite", help="Built-in suite name or path to a YAML/JSON suite")
    eval_parser.add_argument("--baseline", action="store_true")
    eval_parser.add_argument("--base-url", default=None)
    eval_parser.add_argument("--markdown", action="store_true")

    # config subcommand
    config_parser = subparsers.add_parser("config", help="Print a chaos.yml repro document")
    config_parser.add_argument("--seed", default="1337")
    _add_fault_args(config_parser)
    _add_tripwire_args(config_parser)

    # version subcommand
    subparsers.add_parser("version", help="Show version")

    parsed = parser.parse_args(args)
    logging.basicConfig(level=getattr(logging, parsed.log_level), format="%(levelname)s %(name)s: %(message)s")

    if parsed.command == "version":
        print(f"chaoslab {VERSION}")
        return 0
    if parsed.command == "run":
        return _cmd_run(parsed)
    if parsed.command == "eval":
        return _cmd_eval(parsed)
    if parsed.command == "config":
        return _cmd_config(parsed)

    parser.print_help()
    return 1


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
