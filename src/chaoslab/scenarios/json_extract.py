"""Fetch JSON → parse → table scenario."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from chaoslab.errors import StepFault
from chaoslab.scenarios.base import ScenarioContext, run_guarded_step, run_local_step
from chaoslab.scenarios.samples import FALLBACK_USERS

USERS_PATH = "/users"
TABLE_COLUMNS = ("id", "name", "email")


def format_table(records: list[dict[str, Any]], columns: tuple[str, ...] = TABLE_COLUMNS) -> str:
    """Render records as a Markdown table."""
    if not isinstance(records, list):
        raise TypeError("expected a list of records")
    lines = [
        "| " + " | ".join(columns) + " |",
        "|" + "|".join("---" for _ in columns) + "|",
    ]
    for record in records:
        if not isinstance(record, Mapping):
            raise TypeError(f"expected an object record, got {type(record).__name__}")
        lines.append("| " + " | ".join(str(record.get(col, "")) for col in columns) + " |")
    return "\n".join(lines)


async def run_json(ctx: ScenarioContext) -> dict[str, Any]:
    ctx.report(10, "Fetching JSON…")

    async def attempt(n: int) -> tuple[Any, str | None]:
        response = await ctx.fetch_json(USERS_PATH, n)
        if not response.ok:
            raise StepFault(response.fault or f"http_{response.status_code}", f"HTTP {response.status_code}")
        try:
            data = json.loads(response.text)
        except ValueError as exc:
            raise StepFault(response.fault or "malformed_json", str(exc)) from exc
        return data, response.fault

    step = await run_guarded_step(ctx, "web.fetch", attempt, fallback=lambda: list(FALLBACK_USERS))
    data = step.value if step.value is not None else []

    ctx.report(70, "Formatting table…")
    table = run_local_step(ctx, "format_table", lambda: format_table(data)) or ""

    ctx.report(85, "Wrapping up…")
    return {"data": data, "table": table, "fallback": step.used_fallback}
