"""Exception hierarchy for Chaos Lab.

Injected faults are data, not exceptions: the injectors report them on the
response they return. The exceptions below exist for the seams where a step
attempt has to signal failure to the tripwire.
"""

from __future__ import annotations


class ChaosLabError(Exception):
    """Base class for all Chaos Lab errors."""


class StepFault(ChaosLabError):
    """A step attempt failed with a tagged fault."""

    def __init__(self, fault: str, message: str = "") -> None:
        self.fault = fault
        super().__init__(message or fault)


class LoopArrestError(StepFault):
    """Raised by a step that detected it is looping and must be arrested."""

    loop_arrest = True

    def __init__(self, step_key: str) -> None:
        self.step_key = step_key
        super().__init__("loop_arrest", f"loop_arrest: step '{step_key}' is looping")


class ToolUnavailableError(StepFault):
    """Raised when a tool is forced unavailable for the current attempt."""

    def __init__(self, tool: str, attempt: int) -> None:
        self.tool = tool
        self.attempt = attempt
        super().__init__("tool_unavailable", f"tool '{tool}' unavailable on attempt {attempt}")


class SuiteLoadError(ChaosLabError):
    """An evaluation suite document could not be loaded."""
