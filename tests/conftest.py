"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import socket
import threading

import pytest
from click.testing import CliRunner

from livefields.core.state import SharedState
from livefields.server.app import LiveFieldsServer
from livefields.server.registry import ConnectionRegistry

DEFAULT_FIELDS = {"amount": "100", "name": "Bob"}


@pytest.fixture()
def store() -> SharedState:
    return SharedState(DEFAULT_FIELDS)


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


def get_free_port() -> int:
    """Find an available TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture()
def free_port() -> int:
    return get_free_port()


@pytest.fixture()
def live_server():
    """Run an authority on a random port in a background loop, yield the server.

    Usage::

        url = f"ws://127.0.0.1:{live_server.port}/"
    """
    server = LiveFieldsServer(dict(DEFAULT_FIELDS), host="127.0.0.1", port=0)
    loop = asyncio.new_event_loop()
    ready = threading.Event()

    def _run() -> None:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(server.start())
        ready.set()
        loop.run_forever()

    thread = threading.Thread(target=_run, name="livefields-test-server", daemon=True)
    thread.start()
    assert ready.wait(timeout=5.0), "server did not start"

    yield server

    asyncio.run_coroutine_threadsafe(server.stop(), loop).result(timeout=5.0)
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5.0)
    loop.close()


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def invoke(cli_runner: CliRunner, tmp_path, monkeypatch):
    """Return a helper that invokes CLI commands from an empty working directory.

    Usage::

        result = invoke("init", "--port", "9000")
    """
    from livefields.cli.main import cli

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LIVEFIELDS_CONFIG", raising=False)
    monkeypatch.delenv("LIVEFIELDS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("PORT", raising=False)

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), **kwargs)

    return _invoke
