"""Shared plumbing for the CLI commands.

* :func:`browser_presenter` / :func:`print_presenter` -- URL presenters
  handed to the authenticator.
* :func:`api_session` -- loads the environment, resolves a token and
  yields an open :class:`~sptty.client.RestClient`.
* :func:`run` -- runs a command coroutine, mapping
  :class:`~sptty.exceptions.SpttyError` to a printed error and exit code.
"""

from __future__ import annotations

import asyncio
import webbrowser
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, TypeVar

import typer

from sptty.auth.authenticator import UrlPresenter
from sptty.client import RestClient, connect
from sptty.config import load_environment, token_cache_path
from sptty.exceptions import SpttyError
from sptty.output import debug, error, info, print_url

T = TypeVar("T")


def print_presenter(url: str) -> None:
    """Print the authorization URL to stderr."""
    info("Open this URL in your browser to authorise sptty:")
    print_url(url)


def browser_presenter(url: str) -> None:
    """Print the authorization URL and open it in the default browser."""
    print_presenter(url)
    if not webbrowser.open(url):
        debug("No browser could be opened; use the URL above.")


def make_presenter(open_browser: bool) -> UrlPresenter:
    return browser_presenter if open_browser else print_presenter


@asynccontextmanager
async def api_session(url_presenter: UrlPresenter = browser_presenter) -> AsyncIterator[RestClient]:
    """Yield a ready-to-use Web API client."""
    env = load_environment()
    api = await connect(env, url_presenter, token_cache_path())
    async with api:
        yield api


def run(coro: Awaitable[T]) -> T:
    """Run *coro* to completion on a fresh event loop.

    Raises:
        typer.Exit: With the error's exit code when a
            :class:`~sptty.exceptions.SpttyError` escapes.
    """

    async def _main() -> T:
        return await coro

    try:
        return asyncio.run(_main())
    except SpttyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
