"""Playback commands registered directly on the root app.

``next-track``, ``previous-track``, ``play``, ``stop`` and ``status``
each issue a single Web API call on the active device.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from sptty.client import EMPTY, MaybeEmpty, Method
from sptty.commands import common
from sptty.models import PlaybackState, StartResumePlaybackRequest
from sptty.output import info, print_record


def _call(path: str, method: Method, body: Any = EMPTY) -> None:
    async def _send() -> None:
        async with common.api_session() as api:
            await api.request(path, method, body)

    common.run(_send())


def next_track_command() -> None:
    """Skip to the next track."""
    _call("/v1/me/player/next", Method.POST)


def previous_track_command() -> None:
    """Skip to the previous track."""
    _call("/v1/me/player/previous", Method.POST)


def play_command(
    track_uri: Optional[str] = typer.Argument(
        None, help="Track URI to play (e.g. spotify:track:...). Resumes when omitted."
    ),
) -> None:
    """Resume playback, or play a specific track."""
    if track_uri:
        _call("/v1/me/player/play", Method.PUT, StartResumePlaybackRequest(uris=[track_uri]))
    else:
        _call("/v1/me/player/play", Method.PUT)


def stop_command() -> None:
    """Pause playback."""
    _call("/v1/me/player/pause", Method.PUT)


def status_command() -> None:
    """Show what is currently playing."""

    async def _status() -> MaybeEmpty[PlaybackState]:
        async with common.api_session() as api:
            return await api.request("/v1/me/player", Method.GET, output=MaybeEmpty[PlaybackState])

    state = common.run(_status())
    if state.is_empty:
        info("Nothing is playing.")
        return

    playback = state.value
    print_record(
        {
            "playing": playback.is_playing,
            "track": playback.item.name if playback.item else None,
            "uri": playback.item.uri if playback.item else None,
            "device": playback.device.name if playback.device else None,
            "progress_ms": playback.progress_ms,
        }
    )
