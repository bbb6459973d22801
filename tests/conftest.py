"""Shared test fixtures for CallForge test suite."""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


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


@pytest.fixture
def callforge_caplog(caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch) -> pytest.LogCaptureFixture:
    """caplog that also sees ``callforge.*`` records after ``setup_logging``."""
    monkeypatch.setattr(logging.getLogger("callforge"), "propagate", True)
    caplog.set_level(logging.DEBUG, logger="callforge")
    return caplog


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


@pytest.fixture
def closed_port_url() -> str:
    """URL of a localhost port nothing is listening on."""
    return f"http://127.0.0.1:{_get_free_port()}"


# =============================================================================
# Job backend for scenario tests
# =============================================================================


@dataclass
class JobBackend:
    """Scriptable state behind the ``/jobs`` routes.

    ``script`` holds the poll responses in order; the last one repeats.
    A ``str`` entry is sent as a plain-text body.
    """

    script: list[Any] = field(default_factory=lambda: [{"status": "done"}])
    schedule_response: Any = field(default_factory=lambda: {"id": "42", "job": {"id": "42", "state": "queued"}})
    schedule_status: int = 201
    poll_status: int = 200
    scheduled: int = 0
    poll_paths: list[str] = field(default_factory=list)
    schedule_bodies: list[str] = field(default_factory=list)

    @property
    def polls(self) -> int:
        return len(self.poll_paths)

    def next_poll(self) -> Any:
        if len(self.script) > 1:
            return self.script.pop(0)
        return self.script[0]


BACKEND_KEY = web.AppKey("backend", JobBackend)


# =============================================================================
# Echo HTTP Server handlers
# =============================================================================


async def _echo_handler(request: web.Request) -> web.Response:
    """Echo back request details as JSON."""
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "path": str(request.path),
            "query": dict(request.query),
            "headers": dict(request.headers),
            "body": body.decode("utf-8", errors="replace"),
        },
        status=200,
    )


async def _delay_handler(request: web.Request) -> web.Response:
    """Respond after a configurable delay (query param: ?delay=0.5)."""
    delay = float(request.query.get("delay", "0.1"))
    await asyncio.sleep(delay)
    return web.json_response({"delayed_by": delay})


async def _error_handler(request: web.Request) -> web.Response:
    """Return a configurable error status (query param: ?status=500)."""
    status = int(request.query.get("status", "500"))
    return web.json_response({"error": True}, status=status)


async def _upload_handler(request: web.Request) -> web.Response:
    """Report multipart field names, filenames and contents."""
    reader = await request.multipart()
    parts: dict[str, dict[str, str | None]] = {}
    while (part := await reader.next()) is not None:
        content = await part.read()
        parts[part.name or ""] = {
            "filename": part.filename,
            "content": content.decode("utf-8", errors="replace"),
        }
    return web.json_response({"content_type": request.content_type, "parts": parts})


async def _schedule_handler(request: web.Request) -> web.Response:
    """Accept a job and return its id."""
    backend = request.app[BACKEND_KEY]
    backend.scheduled += 1
    backend.schedule_bodies.append(await request.text())
    if isinstance(backend.schedule_response, str):
        return web.Response(text=backend.schedule_response, status=backend.schedule_status)
    return web.json_response(backend.schedule_response, status=backend.schedule_status)


async def _poll_handler(request: web.Request) -> web.Response:
    """Return the next scripted job state."""
    backend = request.app[BACKEND_KEY]
    backend.poll_paths.append(request.path)
    item = backend.next_poll()
    if isinstance(item, str):
        return web.Response(text=item, status=backend.poll_status)
    return web.json_response(item, status=backend.poll_status)


def _create_echo_app(backend: JobBackend | None = None) -> web.Application:
    """Build the test server app with all test routes."""
    app = web.Application()
    app[BACKEND_KEY] = backend or JobBackend()
    app.router.add_route("*", "/echo{path:.*}", _echo_handler)
    app.router.add_get("/delay", _delay_handler)
    app.router.add_route("*", "/error", _error_handler)
    app.router.add_post("/upload", _upload_handler)
    app.router.add_post("/jobs", _schedule_handler)
    app.router.add_get("/jobs/{job_id}", _poll_handler)
    return app


async def _start(app: web.Application) -> tuple[web.AppRunner, str]:
    port = _get_free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    return runner, f"http://127.0.0.1:{port}"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def echo_server() -> AsyncIterator[str]:
    """Aiohttp echo server fixture.

    Returns the base URL (e.g., 'http://127.0.0.1:54321').
    """
    runner, url = await _start(_create_echo_app())
    yield url
    await runner.cleanup()


@dataclass
class JobServer:
    url: str
    backend: JobBackend


@pytest.fixture
async def job_server() -> AsyncIterator[JobServer]:
    """Echo server with a scriptable ``/jobs`` backend."""
    backend = JobBackend()
    runner, url = await _start(_create_echo_app(backend))
    yield JobServer(url=url, backend=backend)
    await runner.cleanup()


# =============================================================================
# Sync fixtures for tests that block the main thread
# =============================================================================


@pytest.fixture
def sync_echo_server() -> Iterator[str]:
    """Echo server running in a background thread for sync tests.

    Useful for CLI tests where ``run_sync`` owns the event loop on the
    main thread.
    """
    port = _get_free_port()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        app = _create_echo_app()
        runner = web.AppRunner(app)
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

    yield f"http://127.0.0.1:{port}"

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)
