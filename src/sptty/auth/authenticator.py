"""Authenticator facade -- ties the PKCE flow and the token cache together.

:class:`Authenticator` exposes the two operations the rest of sptty needs:

* :meth:`~Authenticator.authenticate` -- always run the interactive
  browser flow and cache the new token (``sptty login``).
* :meth:`~Authenticator.get_token` -- refresh the cached token, or run the
  interactive flow when nothing is cached, and return a bearer token.

Progress is tracked as an :class:`AuthState`::

    NO_TOKEN -> AWAITING_USER_AUTHORIZATION -> AWAITING_REDIRECT
             -> EXCHANGING -> AUTHENTICATED
    AUTHENTICATED -> REFRESHING -> AUTHENTICATED

Any failure returns the authenticator to ``NO_TOKEN`` and propagates the
error; there is no fallback from a failed refresh to a new login.
"""

from __future__ import annotations

import enum
from typing import Callable, Optional

import httpx

from sptty.auth import tokens
from sptty.auth.authorize import build_authorization_url
from sptty.auth.cache import TokenCache
from sptty.auth.callback import receive_code
from sptty.auth.pkce import derive_challenge, generate_verifier
from sptty.models import AccessTokenRecord, AuthorizationConfig
from sptty.output import debug

UrlPresenter = Callable[[str], None]


class AuthState(str, enum.Enum):
    NO_TOKEN = "no_token"
    AWAITING_USER_AUTHORIZATION = "awaiting_user_authorization"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class Authenticator:
    """Obtain and maintain an access token for one client configuration.

    Args:
        config: Client settings.
        cache: Where the token record is persisted.
        client: Optional HTTP client used for token endpoint calls.
        timeout: Optional deadline in seconds for the browser redirect.
            ``None`` waits indefinitely.

    Example::

        authenticator = Authenticator(config, TokenCache(token_cache_path()))
        token = await authenticator.get_token(print)
    """

    def __init__(
        self,
        config: AuthorizationConfig,
        cache: TokenCache,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._client = client
        self._timeout = timeout
        self._state = AuthState.NO_TOKEN

    @property
    def state(self) -> AuthState:
        return self._state

    def _transition(self, state: AuthState) -> None:
        debug(f"auth: {self._state.value} -> {state.value}")
        self._state = state

    async def authenticate(self, url_presenter: UrlPresenter) -> AccessTokenRecord:
        """Run the interactive flow regardless of any cached token.

        Args:
            url_presenter: Receives the authorization URL once the loopback
                listener is ready (e.g. opens a browser or prints it).

        Returns:
            The freshly issued and cached token record.
        """
        try:
            record = await self._login(url_presenter)
        except BaseException:
            self._transition(AuthState.NO_TOKEN)
            raise
        return record

    async def get_token(self, url_presenter: UrlPresenter) -> str:
        """Return a usable access token.

        With a cached record the refresh token is always exchanged, whatever
        ``expires_in`` says, and the refreshed record is cached. Without
        one, the interactive flow runs exactly once.
        """
        try:
            cached = self._cache.load()
            if cached is None:
                record = await self._login(url_presenter)
            else:
                self._transition(AuthState.AUTHENTICATED)
                self._transition(AuthState.REFRESHING)
                record = await tokens.refresh(self._config, cached, client=self._client)
                self._cache.store(record)
                self._transition(AuthState.AUTHENTICATED)
        except BaseException:
            self._transition(AuthState.NO_TOKEN)
            raise
        return record.access_token

    async def _login(self, url_presenter: UrlPresenter) -> AccessTokenRecord:
        verifier = generate_verifier()
        url, expected_state = build_authorization_url(self._config, derive_challenge(verifier))

        def present() -> None:
            self._transition(AuthState.AWAITING_USER_AUTHORIZATION)
            url_presenter(url)
            self._transition(AuthState.AWAITING_REDIRECT)

        code = await receive_code(
            self._config.redirect_uri,
            expected_state,
            on_listening=present,
            timeout=self._timeout,
        )

        self._transition(AuthState.EXCHANGING)
        record = await tokens.exchange_code(self._config, verifier, code, client=self._client)
        self._cache.store(record)
        self._transition(AuthState.AUTHENTICATED)
        return record
