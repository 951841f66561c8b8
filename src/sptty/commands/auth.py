"""Auth commands -- ``sptty login`` and ``sptty token``.

Typical workflow::

    sptty login                  # opens the browser, caches the token
    sptty login --no-browser     # only prints the URL (headless machines)
    sptty token                  # prints a fresh access token
"""

from __future__ import annotations

from typing import Optional

import typer

from sptty.auth import Authenticator, TokenCache
from sptty.commands.common import make_presenter, run
from sptty.config import load_environment, token_cache_path
from sptty.output import print_data, success, suggest


def login_command(
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the authorization URL instead of opening a browser."
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Give up if the browser redirect has not arrived after this many seconds.",
    ),
    reset: bool = typer.Option(
        False, "--reset", help="Delete the cached token before logging in."
    ),
) -> None:
    """Log in to Spotify and cache the access token.

    Always runs the full browser flow, even when a token is already cached.

    Example::

        sptty login --no-browser --timeout 300
    """

    async def _login() -> None:
        env = load_environment()
        cache = TokenCache(token_cache_path())
        if reset:
            cache.clear()
        authenticator = Authenticator(env.auth_config, cache, timeout=timeout)
        await authenticator.authenticate(make_presenter(not no_browser))

    run(_login())
    success("Logged in.")
    suggest("List your devices: sptty device list")


def token_command(
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the authorization URL instead of opening a browser."
    ),
) -> None:
    """Print a valid access token to stdout.

    Refreshes the cached token, or logs in first when nothing is cached.
    """

    async def _token() -> str:
        env = load_environment()
        authenticator = Authenticator(env.auth_config, TokenCache(token_cache_path()))
        return await authenticator.get_token(make_presenter(not no_browser))

    print_data(run(_token()))
