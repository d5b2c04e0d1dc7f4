"""Fetch → extract → summarize scenario."""

from __future__ import annotations

import html as html_lib
import re
from typing import Any

from chaoslab.errors import StepFault
from chaoslab.scenarios.base import ScenarioContext, run_guarded_step, run_local_step
from chaoslab.scenarios.samples import FALLBACK_HTML

PAGE_PATH = "/html"

_TAG = re.compile(r"<[^>]+>")
_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.I | re.S)
_HEADING = re.compile(r"<h([1-3])[^>]*>(.*?)</h\1>", re.I | re.S)
_PARAGRAPH = re.compile(r"<p[^>]*>(.*?)</p>", re.I | re.S)
_SENTENCE = re.compile(r"(?<=[.!?])\s+")


def _text(fragment: str) -> str:
    return " ".join(html_lib.unescape(_TAG.sub(" ", fragment)).split())


def extract_structure(page: str) -> dict[str, Any]:
    """Pull title, headings and paragraph text out of an HTML page."""
    headings = [_text(match.group(2)) for match in _HEADING.finditer(page)]
    title_match = _TITLE.search(page)
    title = _text(title_match.group(1)) if title_match else (headings[0] if headings else "")
    paragraphs = [text for text in (_text(p) for p in _PARAGRAPH.findall(page)) if text]
    return {"title": title, "headings": headings, "paragraphs": paragraphs}


def summarize(structure: dict[str, Any], max_sentences: int = 2, max_chars: int = 280) -> str:
    """Extractive summary: the leading sentences of the page body."""
    body = " ".join(structure.get("paragraphs") or [])
    sentences = [s for s in _SENTENCE.split(body) if s]
    summary = " ".join(sentences[:max_sentences])
    if len(summary) > max_chars:
        summary = summary[: max_chars - 1].rstrip() + "…"
    return summary


async def run_fetch(ctx: ScenarioContext) -> dict[str, Any]:
    ctx.report(10, "Fetching page…")

    async def attempt(n: int) -> tuple[str, str | None]:
        response = await ctx.fetch(PAGE_PATH, n)
        if not response.ok:
            raise StepFault(response.fault or f"http_{response.status_code}", f"HTTP {response.status_code}")
        return response.text, response.fault

    step = await run_guarded_step(ctx, "web.fetch", attempt, fallback=lambda: FALLBACK_HTML)
    page = step.value or ""

    ctx.report(55, "Extracting structure…")
    structure = run_local_step(ctx, "extract_structured", lambda: extract_structure(page)) or {}

    ctx.report(70, "Summarizing…")
    summary = run_local_step(ctx, "summarize", lambda: summarize(structure)) or ""

    ctx.report(85, "Wrapping up…")
    return {"html": page, "structure": structure, "summary": summary, "fallback": step.used_fallback}
