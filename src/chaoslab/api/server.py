"""FastAPI mock agent server for Chaos Lab.

Serves the offline sources the bundled scenarios read (an HTML page, a JSON
user list and a Markdown document) and exposes endpoints that run scenarios
and evaluation suites against the server itself.

Run with::

    uvicorn chaoslab.api.server:app
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse

from chaoslab.api.models import EvalRequest, RunRequest
from chaoslab.evals.runner import run_suite
from chaoslab.evals.suite import BUILTIN_SUITES
from chaoslab.reporting import run_report_markdown
from chaoslab.scenarios.runner import MOCK_BASE_URL, SCENARIO_DESCRIPTIONS, SCENARIOS, run_scenario
from chaoslab.scenarios.samples import DEMO_DOC, SAMPLE_HTML, SAMPLE_USERS

logger = logging.getLogger(__name__)

_counters: dict[str, int] = {
    "runs_total": 0,
    "evals_total": 0,
}


async def _no_wait(_seconds: float) -> None:
    return None


def _self_client(app: FastAPI) -> httpx.AsyncClient:
    """Client that sends scenario traffic back into ``app`` in-process."""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=MOCK_BASE_URL)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Chaos Lab Mock Agent",
        description="Offline sources and run endpoints for chaos scenarios",
        version="0.1.0",
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.started = time.time()

    # =====================================================================
    # Health
    # =====================================================================

    @application.get("/health", tags=["health"])
    def health_check() -> dict[str, Any]:
        """Service health check."""
        return {
            "status": "ok",
            "uptime_seconds": round(time.time() - application.state.started, 1),
            "counters": dict(_counters),
        }

    # =====================================================================
    # Scenario sources
    # =====================================================================

    @application.get("/html", tags=["sources"], response_class=HTMLResponse)
    def sample_page() -> str:
        return SAMPLE_HTML

    @application.get("/users", tags=["sources"])
    def sample_users() -> list[dict[str, Any]]:
        return [dict(user) for user in SAMPLE_USERS]

    @application.get("/docs/demo.md", tags=["sources"])
    def demo_doc() -> PlainTextResponse:
        return PlainTextResponse(DEMO_DOC, media_type="text/markdown")

    # =====================================================================
    # Runs
    # =====================================================================

    @application.get("/api/scenarios", tags=["runs"])
    def list_scenarios() -> dict[str, Any]:
        """List runnable scenarios."""
        return {
            "scenarios": [{"name": name, "description": SCENARIO_DESCRIPTIONS.get(name, "")} for name in SCENARIOS],
            "count": len(SCENARIOS),
        }

    @application.post("/api/v1/runs", tags=["runs"])
    async def create_run(body: RunRequest, request: Request) -> dict[str, Any]:
        """Run a scenario against this server and return its scored trace."""
        if body.scenario not in SCENARIOS:
            raise HTTPException(status_code=404, detail=f"Unknown scenario '{body.scenario}'")
        sleep = asyncio.sleep if body.simulate_delays else _no_wait
        async with _self_client(request.app) as client:
            baseline = None
            if body.baseline:
                baseline = await run_scenario(
                    body.scenario, body.seed, False, body.faults, body.tripwire,
                    client=client, base_url=MOCK_BASE_URL, mttr_target=body.mttr_target, sleep=sleep,
                )
            run = await run_scenario(
                body.scenario, body.seed, body.chaos, body.faults, body.tripwire,
                client=client, base_url=MOCK_BASE_URL, mttr_target=body.mttr_target, sleep=sleep,
            )
        _counters["runs_total"] += 1
        payload = run.to_dict()
        payload["yaml"] = run.yaml
        payload["report"] = run_report_markdown(run, baseline)
        if baseline is not None:
            payload["baseline"] = baseline.metrics.to_dict()
            payload["delta"] = run.score - baseline.score
        return payload

    @application.post("/api/v1/evals/{suite}", tags=["evals"])
    async def run_eval(suite: str, request: Request, body: EvalRequest | None = None) -> dict[str, Any]:
        """Run a built-in evaluation suite."""
        if suite not in BUILTIN_SUITES:
            raise HTTPException(
                status_code=404,
                detail=f"Unknown suite '{suite}'. Choose from: {', '.join(sorted(BUILTIN_SUITES))}",
            )
        body = body or EvalRequest()
        sleep = asyncio.sleep if body.simulate_delays else _no_wait
        async with _self_client(request.app) as client:
            report = await run_suite(BUILTIN_SUITES[suite], body.baseline, client=client, sleep=sleep)
        _counters["evals_total"] += 1
        logger.info("Suite %s via API: overall %d", suite, report.overall_score)
        return report.to_dict()

    return application


app = create_app()
