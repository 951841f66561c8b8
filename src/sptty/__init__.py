"""sptty -- a lightweight Spotify client for the terminal.

The package authenticates against Spotify's OAuth2 service with the
Authorization Code + PKCE flow, caches the resulting token on disk, and
drives the Web API with bearer-authenticated REST calls.

Typical workflow::

    sptty login            # open the browser and authorise sptty
    sptty device list      # list Spotify Connect devices
    sptty play             # resume playback

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and cache paths.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    auth: PKCE flow, loopback callback server, token exchange and cache.
    client: Authenticated REST client for the Web API.
"""

__version__ = "0.1.0"
