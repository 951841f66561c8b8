"""Terminal output for sptty.

Two streams, two audiences:

* **stdout** carries results a script may consume: the access token printed
  by ``sptty token``, the device table, the playback record.
* **stderr** carries everything meant for the person at the keyboard: the
  authorization URL, progress notes, errors and ``--verbose`` traces.

Results are rendered as Rich tables when stdout is a terminal and as
tab-separated text otherwise; ``--json`` switches to JSON and ``--plain``
forces the tab-separated form. ``NO_COLOR``, ``TERM=dumb`` and
``--no-color`` turn off styling on both streams.

:class:`OutputManager` holds those choices. One instance is installed by
:func:`~sptty.app.main_callback` through :func:`set_output`; library code
calls the module-level helpers (:func:`debug`, :func:`info`, ...) so it
never has to carry the manager around.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """How results on stdout are rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, coloured terminal and
    ``PLAIN`` everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes results to stdout and diagnostics to stderr.

    Args:
        format: Result format; ``AUTO`` is resolved at construction.
        no_color: Disable styling even on a terminal.
        quiet: Drop progress notes (:meth:`info`, :meth:`success`,
            :meth:`suggest`). Errors and the authorization URL are kept.
        verbose: Show :meth:`debug` traces.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Results (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write *text* to stdout unchanged."""
        print(text, file=sys.stdout, flush=True)

    def print_record(self, data: dict[str, Any]) -> None:
        """Write one record, e.g. the current playback state.

        JSON mode emits an indented object, plain mode ``key<TAB>value``
        lines, and rich mode a two-column table.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
            return
        if self._format == OutputFormat.PLAIN:
            for key, value in data.items():
                self.print_data(f"{key}\t{value}")
            return

        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan")
        table.add_column()
        for key, value in data.items():
            table.add_row(escape(key), escape("" if value is None else str(value)))
        self._stdout.print(table)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows of cells under *headers*.

        JSON mode emits a list of objects keyed by header, plain mode one
        tab-separated line per row without the header, and rich mode a
        titled table.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for row in rows:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def _emit(self, message: str, prefix: str = "", style: str = "") -> None:
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        text = escape(f"{prefix}{message}")
        self._stderr.print(f"[{style}]{text}[/{style}]" if style else text, highlight=False)

    def print_url(self, url: str) -> None:
        """Write *url* to stderr on a line of its own, never wrapped or styled.

        Shown even with ``--quiet``: the login cannot finish without it.
        """
        print(url, file=sys.stderr, flush=True)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, style="green")

    def error(self, message: str) -> None:
        """Write an error. Never suppressed."""
        self._emit(message, prefix="Error: ", style="bold red")

    def suggest(self, message: str) -> None:
        """Write a next-step hint such as the command to run after login."""
        if not self._quiet:
            self._emit(message, prefix="→ ", style="dim")

    def debug(self, message: str) -> None:
        """Write a trace line when ``--verbose`` is on.

        Messages may contain raw HTTP bodies, so they are never parsed as
        Rich markup.
        """
        if self._verbose:
            self._emit(message, prefix="[debug] ", style="dim")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (to anything) or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_record(data: dict[str, Any]) -> None:
    get_output().print_record(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def print_url(url: str) -> None:
    get_output().print_url(url)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
