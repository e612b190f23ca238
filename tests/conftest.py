"""Shared test fixtures for the stresstester test suite."""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from stresstester._internal.config import RunConfig


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Target HTTP server
# =============================================================================


@dataclass
class ServerStats:
    """Request counters kept by the target server."""

    hits: int = 0
    in_flight: int = 0
    max_in_flight: int = 0
    bodies: list[bytes] = field(default_factory=list)


@dataclass
class TargetServer:
    """A running target server."""

    base_url: str
    stats: ServerStats

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"


STATS_KEY = web.AppKey("stats", ServerStats)


@web.middleware
async def _track_in_flight(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Count concurrent requests being handled."""
    stats = request.app[STATS_KEY]
    stats.hits += 1
    stats.in_flight += 1
    stats.max_in_flight = max(stats.max_in_flight, stats.in_flight)
    try:
        return await handler(request)
    finally:
        stats.in_flight -= 1


async def _success_handler(request: web.Request) -> web.Response:
    return web.Response(text="Success\n", status=200)


async def _fail_handler(request: web.Request) -> web.Response:
    return web.Response(text="Internal Server Error\n", status=500)


async def _body_handler(request: web.Request) -> web.Response:
    request.app[STATS_KEY].bodies.append(await request.read())
    return web.Response(text="Received body\n", status=200)


async def _header_handler(request: web.Request) -> web.Response:
    if request.headers.get("X-Test-Header"):
        return web.Response(text="Header received\n", status=200)
    return web.Response(text="Header missing\n", status=400)


async def _slow_handler(request: web.Request) -> web.Response:
    """Respond after a configurable delay (query param: ?delay=0.5)."""
    delay = float(request.query.get("delay", "0.5"))
    await asyncio.sleep(delay)
    return web.Response(text="Slow response\n", status=200)


async def _status_handler(request: web.Request) -> web.Response:
    """Return the status given in the path, e.g. /status/404."""
    return web.Response(text="status\n", status=int(request.match_info["code"]))


def _create_target_app(stats: ServerStats) -> web.Application:
    """Build the target server app with all test routes."""
    app = web.Application(middlewares=[_track_in_flight])
    app[STATS_KEY] = stats
    app.router.add_route("*", "/success", _success_handler)
    app.router.add_route("*", "/fail", _fail_handler)
    app.router.add_route("*", "/with-body", _body_handler)
    app.router.add_route("*", "/with-header", _header_handler)
    app.router.add_route("*", "/slow", _slow_handler)
    app.router.add_route("*", "/status/{code:\\d+}", _status_handler)
    return app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def target_server() -> AsyncIterator[TargetServer]:
    """Aiohttp target server running on the test's event loop."""
    stats = ServerStats()
    port = _get_free_port()
    runner = web.AppRunner(_create_target_app(stats))
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield TargetServer(base_url=f"http://127.0.0.1:{port}", stats=stats)
    await runner.cleanup()


@pytest.fixture
def sync_target_server() -> Iterator[TargetServer]:
    """Target server running in a background thread for blocking tests.

    The runner and the CLI start their own event loop, so the server must
    live on a different one.
    """
    stats = ServerStats()
    port = _get_free_port()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_target_app(stats))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield TargetServer(base_url=f"http://127.0.0.1:{port}", stats=stats)

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


@pytest.fixture
def free_port() -> int:
    """A localhost port with nothing listening on it."""
    return _get_free_port()


@pytest.fixture(autouse=True)
def _reset_stresstester_logger() -> Iterator[None]:
    """Undo ``setup_logging`` so caplog sees records in every test."""
    logger = logging.getLogger("stresstester")
    yield
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def make_config() -> Callable[..., RunConfig]:
    """Factory for validated run configurations with short timeouts."""
    from stresstester._internal.config import RunConfig

    def _make(url: str, requests: int = 5, concurrency: int = 2, **kwargs: object) -> RunConfig:
        kwargs.setdefault("timeout", 5.0)
        return RunConfig.create(url, requests, concurrency=concurrency, **kwargs)  # type: ignore[arg-type]

    return _make
