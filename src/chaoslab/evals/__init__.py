"""Evaluation suites over chaos scenarios."""

from .runner import CaseReport, SeedRun, SuiteReport, evaluate_assertions, run_suite, suite_report_markdown
from .suite import BUILTIN_SUITES, Assertion, EvalCase, EvalSuite, FaultSpec, load_suite

__all__ = [
    "CaseReport", "SeedRun", "SuiteReport", "evaluate_assertions", "run_suite", "suite_report_markdown",
    "BUILTIN_SUITES", "Assertion", "EvalCase", "EvalSuite", "FaultSpec", "load_suite",
]
