"""Mini-RAG scenario: retrieve a document and answer questions from it."""

from __future__ import annotations

import re
from typing import Any

from chaoslab.chaos.injectors import FAULT_CONTEXT_TRUNCATE, FAULT_INJECT, chaos_rag_doc
from chaoslab.errors import StepFault
from chaoslab.scenarios.base import ScenarioContext, run_guarded_step
from chaoslab.scenarios.samples import DEMO_DOC
from chaoslab.trace import StepStatus

DOC_PATH = "/docs/demo.md"

QUESTIONS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("What is MTTR?", re.compile(r"MTTR.+?recovery", re.I)),
    ("Why use exponential backoff with jitter?", re.compile(r"jitter.+?retr", re.I)),
)


def answer(doc: str, pattern: re.Pattern[str]) -> str | None:
    """Return the line of ``doc`` that answers ``pattern``, if any."""
    match = pattern.search(doc)
    if match is None:
        return None
    start = doc.rfind("\n", 0, match.start()) + 1
    end = doc.find("\n", match.end())
    return doc[start : end if end != -1 else len(doc)].strip()


def doc_faults(original: str, ctx: ScenarioContext) -> str | None:
    """Fault tag describing what the document injector did to ``original``."""
    if not ctx.chaos:
        return None
    faults = ctx.faults
    tags = []
    if faults.ctx_bytes > 0 and len(original) > faults.ctx_bytes:
        tags.append(FAULT_CONTEXT_TRUNCATE)
    if faults.inj_seed:
        tags.append(FAULT_INJECT)
    return ",".join(tags) or None


async def run_rag(ctx: ScenarioContext, fallback_doc: str = DEMO_DOC) -> dict[str, Any]:
    ctx.report(10, "Loading doc…")

    async def attempt(n: int) -> tuple[str, str | None]:
        response = await ctx.fetch(DOC_PATH, n, quiet=True)
        if not response.ok:
            raise StepFault(response.fault or f"http_{response.status_code}", f"HTTP {response.status_code}")
        return _retrieve(ctx, response.text)

    step = await run_guarded_step(ctx, "rag.retrieve", attempt, fallback=lambda: _retrieve(ctx, fallback_doc)[0])
    doc = step.value or ""
    truncated = ctx.chaos and ctx.faults.ctx_bytes > 0

    ctx.report(60, "Answering questions…")
    for question, pattern in QUESTIONS:
        mark = ctx.trace.start()
        found = answer(doc, pattern)
        if found is not None:
            ctx.answers[question] = found
            ctx.trace.end("rag.answer", mark, StepStatus.OK, note=question)
        else:
            lost = FAULT_CONTEXT_TRUNCATE if truncated else None
            ctx.trace.end("rag.answer", mark, StepStatus.FAILED, fault=lost, note=question)

    ctx.report(85, "Wrapping up…")
    return {"text": doc, "answers": dict(ctx.answers), "fallback": step.used_fallback}


def _retrieve(ctx: ScenarioContext, original: str) -> tuple[str, str | None]:
    if not ctx.chaos:
        return original, None
    return chaos_rag_doc(original, ctx.seed, ctx.faults), doc_faults(original, ctx)
