"""Tests for trace JSON and Markdown reports."""

import json
from datetime import datetime, timezone

import pytest

from chaoslab.chaos.config import FaultConfig
from chaoslab.reporting import run_report_markdown, trace_to_json
from chaoslab.scenarios.runner import run_scenario


class TestReports:
    @pytest.mark.asyncio
    async def test_trace_json(self, no_wait):
        run = await run_scenario("json", "4242", faults=FaultConfig(malformed_rate=1.0), sleep=no_wait)
        doc = json.loads(trace_to_json(run, now=1700000000.5))
        assert doc["scenario"] == "json"
        assert doc["run_id"] == "acm-1700000000500-4242"
        assert len(doc["steps"]) == len(run.rows)
        assert doc["steps"][0]["fault"] == "malformed_json"
        assert doc["metrics"]["score"] == run.score

    @pytest.mark.asyncio
    async def test_markdown_report_with_baseline(self, no_wait):
        faults = FaultConfig(http_500_rate=1.0)
        baseline = await run_scenario("fetch", "1337", chaos=False, faults=faults, sleep=no_wait)
        run = await run_scenario("fetch", "1337", faults=faults, sleep=no_wait)
        now = datetime(2025, 1, 2, tzinfo=timezone.utc)
        text = run_report_markdown(run, baseline, profile="ci", now=now)
        assert text.startswith("# Chaos Lab — REPORT")
        assert "- Date: 2025-01-02T00:00:00+00:00" in text
        assert "- Profile: ci" in text
        assert "**Baseline Score:** 100" in text
        assert f"**Δ Score:** {run.score - 100}" in text
        assert "| loop_arrest |" in text
        assert text.rstrip().endswith("```")
        assert run.yaml in text

    @pytest.mark.asyncio
    async def test_markdown_report_without_baseline(self, no_wait):
        run = await run_scenario("rag", "2025", sleep=no_wait)
        text = run_report_markdown(run)
        assert "Baseline Score" not in text
        assert "**Chaos Score:** 100" in text
