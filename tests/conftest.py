"""Shared fixtures for Chaos Lab tests."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from chaoslab.api.server import create_app
from chaoslab.scenarios.runner import MOCK_BASE_URL


async def _no_wait(_seconds: float) -> None:
    return None


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records requested waits."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def no_wait():
    return _no_wait


@pytest.fixture()
def sleeper():
    return SleepRecorder()


@pytest.fixture()
def mock_app():
    return create_app()


@pytest_asyncio.fixture()
async def mock_http(mock_app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=mock_app), base_url=MOCK_BASE_URL) as client:
        yield client
