# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, List, Optional

import pytest
from aiohttp import web

from indexnower.logger import configure
from indexnower.models import Site
from indexnower.storage import MemoryStore, StateStore


class FakeFetch:
    """Content collaborator backed by a dict; missing URLs count as failed fetches."""

    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages: Dict[str, str] = dict(pages or {})
        self.calls: List[str] = []

    async def __call__(self, url: str) -> Optional[str]:
        self.calls.append(url)
        return self.pages.get(url)


class FakeTransport:
    """Records IndexNow payloads and answers with queued statuses (default 200)."""

    def __init__(self, statuses: Optional[List[object]] = None) -> None:
        self.statuses = list(statuses or [])
        self.payloads: List[dict] = []

    async def __call__(self, payload: dict):
        self.payloads.append(payload)
        answer = self.statuses.pop(0) if self.statuses else 200
        if isinstance(answer, BaseException):
            raise answer
        return answer, "" if answer in (200, 202) else "rejected"


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI tests point the log handler at CliRunner's stream; rebind it after each test."""
    yield
    configure(level="WARNING")


@pytest.fixture()
def state() -> StateStore:
    """Empty state over an in-memory document."""
    return StateStore(MemoryStore())


@pytest.fixture()
def site(state: StateStore) -> Site:
    s = state.create_site("Example")
    state.update_site_settings(s.id, api_key="abc123", host="example.com")
    return state.get_site(s.id)


@pytest.fixture()
def fake_fetch() -> FakeFetch:
    return FakeFetch()


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
