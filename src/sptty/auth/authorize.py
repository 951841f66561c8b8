"""Authorization request construction.

:func:`build_authorization_url` produces the URL the user opens in a
browser, together with the CSRF ``state`` token the loopback listener must
see echoed back.
"""

from __future__ import annotations

import base64
import secrets
from urllib.parse import urlencode, urlsplit, urlunsplit

from sptty.exceptions import ConfigError
from sptty.models import AuthorizationConfig

SCOPE = "streaming user-read-email user-read-private user-read-playback-state user-top-read"
STATE_BYTES = 16


def generate_state() -> str:
    """Return 16 random bytes, base64url-encoded without padding."""
    raw = secrets.token_bytes(STATE_BYTES)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def build_authorization_url(config: AuthorizationConfig, challenge: str) -> tuple[str, str]:
    """Build the authorization request URL.

    Args:
        config: Client settings; ``authorization_endpoint`` is the base URL.
        challenge: The S256 PKCE challenge for this attempt.

    Returns:
        A tuple of ``(authorization_url, expected_state)``.

    Raises:
        ConfigError: If ``authorization_endpoint`` is not an absolute URL.
    """
    try:
        parts = urlsplit(config.authorization_endpoint)
    except ValueError as exc:
        raise ConfigError(
            f"Invalid authorization_endpoint: {config.authorization_endpoint!r}"
        ) from exc
    if not parts.scheme or not parts.netloc:
        raise ConfigError(
            f"Invalid authorization_endpoint: {config.authorization_endpoint!r}"
        )

    state = generate_state()
    query = urlencode(
        [
            ("client_id", config.client_id),
            ("response_type", "code"),
            ("redirect_uri", config.redirect_uri),
            ("code_challenge_method", "S256"),
            ("code_challenge", challenge),
            ("scope", SCOPE),
            ("state", state),
        ]
    )
    if parts.query:
        query = f"{parts.query}&{query}"

    url = urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
    return url, state
