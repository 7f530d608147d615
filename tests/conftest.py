# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Dict

import pytest
import pytest_asyncio
from aiohttp import web

from neoscout.config import ScoutConfig
from neoscout.crawler.models import Origin

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def html(text: str, counter: Dict[str, int] | None = None, key: str = "") -> Handler:
    """Handler returning *text* as an HTML page, optionally counting hits."""

    async def handler(_):
        if counter is not None:
            counter[key] = counter.get(key, 0) + 1
        return web.Response(text=text, content_type="text/html")

    return handler


def xml(text: str) -> Handler:
    async def handler(_):
        return web.Response(text=text, content_type="application/xml")

    return handler


def blob(size: int, content_type: str = "application/octet-stream") -> Handler:
    async def handler(_):
        return web.Response(body=b"x" * size, content_type=content_type)

    return handler


@pytest_asyncio.fixture
async def serve() -> AsyncIterator[Callable[[Dict[str, Handler]], Awaitable[str]]]:
    """
    Start an aiohttp app with the given GET routes on a free port.
    Returns the base URL; every app is cleaned up after the test.
    """
    runners: list[web.AppRunner] = []

    async def _serve(routes: Dict[str, Handler]) -> str:
        app = web.Application()
        for path, handler in routes.items():
            app.router.add_get(path, handler)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        runners.append(runner)
        host, port = runner.addresses[0][:2]
        return f"http://{host}:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def make_config() -> Callable[..., ScoutConfig]:
    """Return a factory of fast, retry-free configs for *site*."""

    def _make(site: str, **overrides) -> ScoutConfig:
        values = dict(site=site, timeout=2.0, retry_times=0, concurrency=4, crawl_depth=2)
        values.update(overrides)
        return ScoutConfig(**values)

    return _make


@pytest.fixture()
def origin() -> Origin:
    return Origin.from_identifier("example.neocities.org")
