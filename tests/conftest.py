"""Shared test fixtures for sptty.

Provides isolated config/cache directories, output state management, a
CLI runner, and helpers for driving the loopback redirect listener from
inside a test. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import socket
from pathlib import Path
from typing import Awaitable, Callable

import pytest

from sptty.models import AccessTokenRecord, AuthorizationConfig
from sptty.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG base directories and ``SPTTY_CONFIG_DIR`` at
    subdirectories of tmp_path so that tests never touch real user
    config or a real cached token. Clears ``SPTTY_API_ENDPOINT``.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("sptty.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("SPTTY_CONFIG_DIR", str(tmp_path / "config" / "sptty"))
    monkeypatch.delenv("SPTTY_API_ENDPOINT", raising=False)
    return tmp_path


@pytest.fixture
def config_file(isolated_config: Path) -> Path:
    """Write a minimal ``config.toml`` into the isolated config directory."""
    path = isolated_config / "config" / "sptty" / "config.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        'client_id = "abc"\n'
        'redirect_uri = "http://127.0.0.1:4381/callback"\n',
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------


@pytest.fixture
def token_record() -> AccessTokenRecord:
    return AccessTokenRecord(
        access_token="access-1",
        token_type="Bearer",
        scope="user-read-email",
        expires_in=3600,
        refresh_token="refresh-1",
    )


@pytest.fixture
def free_port() -> int:
    """A TCP port on 127.0.0.1 that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def loopback_config(free_port: int) -> AuthorizationConfig:
    """Client settings whose redirect URI points at :func:`free_port`."""
    return AuthorizationConfig(
        client_id="abc",
        redirect_uri=f"http://127.0.0.1:{free_port}/callback",
        authorization_endpoint="https://auth.test/authorize",
        token_endpoint="https://auth.test/api/token",
    )


# ---------------------------------------------------------------------------
# Loopback client
# ---------------------------------------------------------------------------


async def _http_get(port: int, target: str) -> bytes:
    """Send one ``Connection: close`` GET to 127.0.0.1 and read until EOF."""
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    try:
        writer.write(
            f"GET {target} HTTP/1.1\r\nHost: 127.0.0.1:{port}\r\n"
            "Connection: close\r\n\r\n".encode("ascii")
        )
        await writer.drain()
        return await reader.read()
    finally:
        writer.close()


@pytest.fixture
def http_get() -> Callable[[int, str], Awaitable[bytes]]:
    """Return a coroutine function that plays the browser's redirect."""
    return _http_get


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
