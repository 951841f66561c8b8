"""Command-line entry point.

``app`` is the root Typer application; every sub-command is registered on
it at import time so tests can drive it with :class:`typer.testing.CliRunner`.
:func:`main` is what the ``sptty`` console script calls.

Errors raised inside a command are reported by
:func:`sptty.commands.common.run`; :func:`main` only deals with what escapes
that: Ctrl-C, and bugs, which leave a traceback under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from types import FrameType
from typing import Optional

import typer

from sptty import __version__
from sptty.commands.auth import login_command, token_command
from sptty.commands.device import device_app
from sptty.commands.player import (
    next_track_command,
    play_command,
    previous_track_command,
    status_command,
    stop_command,
)
from sptty.config import get_data_dir
from sptty.exceptions import InvalidUsageError, SpttyError
from sptty.exit_codes import EXIT_GENERIC_FAILURE
from sptty.output import OutputFormat, OutputManager, error, set_output

app = typer.Typer(
    name="sptty",
    help="Control Spotify playback from the terminal.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("login")(login_command)
app.command("token")(token_command)
app.add_typer(device_app, name="device", help="List or switch Spotify Connect devices.")
app.command("next-track")(next_track_command)
app.command("previous-track")(previous_track_command)
app.command("play")(play_command)
app.command("stop")(stop_command)
app.command("status")(status_command)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"sptty {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print results as tab-separated text."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print results and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Trace HTTP traffic and auth steps."),
) -> None:
    """Control Spotify playback from the terminal."""
    if json_output and plain_output:
        conflict = InvalidUsageError("--json and --plain are mutually exclusive")
        error(str(conflict))
        raise typer.Exit(code=conflict.exit_code)

    fmt = OutputFormat.JSON if json_output else OutputFormat.PLAIN if plain_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


def _exit_on_interrupt(signum: int, frame: Optional[FrameType]) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(128 + signum)


def _save_traceback() -> str:
    """Write the active exception's traceback to a crash log; return its path."""
    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(log_path)


def main() -> None:
    """Run the CLI and exit with its status code."""
    signal.signal(signal.SIGINT, _exit_on_interrupt)
    try:
        app()
    except SystemExit:
        raise
    except SpttyError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Debug log: {_save_traceback()}")
        sys.exit(EXIT_GENERIC_FAILURE)
