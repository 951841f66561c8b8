"""Tests for the CLI commands, driven through the Typer app."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable

import httpx
import pytest

from sptty import __version__
from sptty.app import app
from sptty.auth import Authenticator, TokenCache
from sptty.client import RestClient
from sptty.commands.device import select_device
from sptty.exceptions import NotFoundError
from sptty.models import AccessTokenRecord, Device

_DEVICES = {
    "devices": [
        {"id": "dev-1", "is_active": True, "name": "Kitchen", "type": "Speaker"},
        {"id": "dev-2", "is_active": False, "name": "Laptop", "type": "Computer"},
    ]
}


class _FakeApi:
    """MockTransport handler standing in for the Web API."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self._routes = routes or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._routes.get((request.method, request.url.path), httpx.Response(204))


@pytest.fixture()
def fake_api(monkeypatch: pytest.MonkeyPatch) -> Callable[..., _FakeApi]:
    """Patch the commands' API session to talk to an in-memory Web API."""

    def install(routes: dict[tuple[str, str], httpx.Response] | None = None) -> _FakeApi:
        api = _FakeApi(routes)

        @asynccontextmanager
        async def session(url_presenter=None):
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
                async with RestClient("tok", "https://api.test", client=client) as rest:
                    yield rest

        monkeypatch.setattr("sptty.commands.common.api_session", session)
        return api

    return install


def _invoke(cli_runner, *args: str):
    return cli_runner.invoke(app, ["--no-color", *args])


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"sptty {__version__}" in result.output

    def test_json_and_plain_conflict(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--json", "--plain", "stop"])
        assert result.exit_code == 2
        assert "--json and --plain are mutually exclusive" in result.output

    def test_help_lists_commands(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("login", "token", "device", "next-track", "previous-track", "play", "stop", "status"):
            assert name in result.output


# ---------------------------------------------------------------------------
# Device commands
# ---------------------------------------------------------------------------


class TestSelectDevice:
    @pytest.fixture()
    def devices(self) -> list[Device]:
        return [Device(**d) for d in _DEVICES["devices"]]

    def test_case_insensitive_prefix(self, devices: list[Device]) -> None:
        assert select_device(devices, "lap").id == "dev-2"

    def test_first_match_wins(self, devices: list[Device]) -> None:
        assert select_device(devices, "").id == "dev-1"

    def test_by_id(self, devices: list[Device]) -> None:
        assert select_device(devices, "dev-2", by_id=True).name == "Laptop"

    def test_id_requires_exact_match(self, devices: list[Device]) -> None:
        with pytest.raises(NotFoundError, match="no match device found."):
            select_device(devices, "dev", by_id=True)


class TestDeviceCommands:
    def test_list(self, cli_runner, fake_api) -> None:
        api = fake_api({("GET", "/v1/me/player/devices"): httpx.Response(200, json=_DEVICES)})
        result = _invoke(cli_runner, "device", "list")

        assert result.exit_code == 0, result.output
        assert "Kitchen\tSpeaker\tdev-1" in result.output
        assert "Laptop\tComputer\tdev-2" in result.output
        assert api.requests[0].headers["authorization"] == "Bearer tok"

    def test_bare_device_lists(self, cli_runner, fake_api) -> None:
        fake_api({("GET", "/v1/me/player/devices"): httpx.Response(200, json=_DEVICES)})
        result = _invoke(cli_runner, "device")
        assert result.exit_code == 0, result.output
        assert "Kitchen" in result.output

    def test_list_json(self, cli_runner, fake_api) -> None:
        fake_api({("GET", "/v1/me/player/devices"): httpx.Response(200, json=_DEVICES)})
        result = cli_runner.invoke(app, ["--json", "device", "list"])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert rows[1] == {"Active": "", "Name": "Laptop", "Type": "Computer", "Id": "dev-2"}

    def test_set_transfers_playback(self, cli_runner, fake_api) -> None:
        api = fake_api({("GET", "/v1/me/player/devices"): httpx.Response(200, json=_DEVICES)})
        result = _invoke(cli_runner, "device", "set", "LAP", "--play")

        assert result.exit_code == 0, result.output
        transfer = api.requests[-1]
        assert (transfer.method, transfer.url.path) == ("PUT", "/v1/me/player")
        assert json.loads(transfer.content) == {"device_ids": ["dev-2"], "play": True}
        assert "Laptop" in result.output

    def test_set_by_id(self, cli_runner, fake_api) -> None:
        api = fake_api({("GET", "/v1/me/player/devices"): httpx.Response(200, json=_DEVICES)})
        result = _invoke(cli_runner, "device", "set", "--id", "dev-1")

        assert result.exit_code == 0, result.output
        assert json.loads(api.requests[-1].content) == {"device_ids": ["dev-1"], "play": False}

    def test_set_unknown_device(self, cli_runner, fake_api) -> None:
        api = fake_api({("GET", "/v1/me/player/devices"): httpx.Response(200, json=_DEVICES)})
        result = _invoke(cli_runner, "device", "set", "bedroom")

        assert result.exit_code == 4
        assert "no match device found." in result.output
        assert [r.method for r in api.requests] == ["GET"]


# ---------------------------------------------------------------------------
# Playback commands
# ---------------------------------------------------------------------------


class TestPlayerCommands:
    @pytest.mark.parametrize(
        ("command", "method", "path"),
        [
            ("next-track", "POST", "/v1/me/player/next"),
            ("previous-track", "POST", "/v1/me/player/previous"),
            ("play", "PUT", "/v1/me/player/play"),
            ("stop", "PUT", "/v1/me/player/pause"),
        ],
    )
    def test_simple_commands(self, cli_runner, fake_api, command, method, path) -> None:
        api = fake_api()
        result = _invoke(cli_runner, command)

        assert result.exit_code == 0, result.output
        request = api.requests[0]
        assert (request.method, request.url.path) == (method, path)
        assert request.content == b""
        assert request.headers["content-length"] == "0"

    def test_play_track(self, cli_runner, fake_api) -> None:
        api = fake_api()
        result = _invoke(cli_runner, "play", "spotify:track:4iV5W9uYEdYUVa79Axb7Rh")

        assert result.exit_code == 0, result.output
        assert json.loads(api.requests[0].content) == {
            "uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]
        }

    def test_api_error_exit_code(self, cli_runner, fake_api) -> None:
        body = '{"error":{"status":404,"message":"No active device found"}}'
        fake_api({("POST", "/v1/me/player/next"): httpx.Response(404, text=body)})
        result = _invoke(cli_runner, "next-track")

        assert result.exit_code == 5
        assert "failed to request (404)" in result.output
        assert "No active device found" in result.output

    def test_status_nothing_playing(self, cli_runner, fake_api) -> None:
        fake_api({("GET", "/v1/me/player"): httpx.Response(204)})
        result = _invoke(cli_runner, "status")

        assert result.exit_code == 0, result.output
        assert "Nothing is playing." in result.output

    def test_status_playing(self, cli_runner, fake_api) -> None:
        state = {
            "is_playing": True,
            "progress_ms": 1000,
            "device": _DEVICES["devices"][0],
            "item": {"name": "Song", "uri": "spotify:track:1", "duration_ms": 200000},
        }
        fake_api({("GET", "/v1/me/player"): httpx.Response(200, json=state)})
        result = _invoke(cli_runner, "status")

        assert result.exit_code == 0, result.output
        assert "track\tSong" in result.output
        assert "device\tKitchen" in result.output


# ---------------------------------------------------------------------------
# Auth commands
# ---------------------------------------------------------------------------


class TestAuthCommands:
    def test_token_refreshes_cached_record(
        self,
        cli_runner,
        config_file: Path,
        token_record: AccessTokenRecord,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from sptty.config import token_cache_path

        TokenCache(token_cache_path()).store(token_record)
        refreshed = token_record.model_copy(update={"access_token": "BQD-fresh"})

        async def fake_refresh(config, token, *, client=None):
            assert token.refresh_token == "refresh-1"
            return refreshed

        monkeypatch.setattr("sptty.auth.tokens.refresh", fake_refresh)
        result = _invoke(cli_runner, "token")

        assert result.exit_code == 0, result.output
        assert "BQD-fresh" in result.stdout
        assert TokenCache(token_cache_path()).load() == refreshed

    def test_missing_config(self, cli_runner, isolated_config: Path) -> None:
        result = _invoke(cli_runner, "token")
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_login_reset_clears_cache(
        self,
        cli_runner,
        config_file: Path,
        token_record: AccessTokenRecord,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from sptty.config import token_cache_path

        cache = TokenCache(token_cache_path())
        cache.store(token_record)
        seen: list[AccessTokenRecord | None] = []

        async def fake_authenticate(self, url_presenter):
            seen.append(cache.load())
            return token_record

        monkeypatch.setattr(Authenticator, "authenticate", fake_authenticate)
        result = _invoke(cli_runner, "login", "--reset", "--no-browser")

        assert result.exit_code == 0, result.output
        assert seen == [None]
        assert "Logged in." in result.output

    def test_login_rejects_short_timeout(self, cli_runner, config_file: Path) -> None:
        result = _invoke(cli_runner, "login", "--timeout", "0")
        assert result.exit_code == 2
