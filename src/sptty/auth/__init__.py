"""OAuth2 Authorization Code + PKCE authentication for sptty.

The main entry points are:

- :class:`Authenticator` -- runs the interactive login and keeps the cached
  token fresh.
- :class:`TokenCache` -- on-disk persistence of the token record.
- :func:`receive_code` -- the one-shot loopback listener for the redirect.

Typical usage::

    from sptty.auth import Authenticator, TokenCache
    from sptty.config import token_cache_path

    authenticator = Authenticator(env.auth_config, TokenCache(token_cache_path()))
    token = await authenticator.get_token(print)
"""

from sptty.auth.authenticator import Authenticator, AuthState
from sptty.auth.cache import TokenCache
from sptty.auth.callback import LoopbackCallbackServer, OneShot, receive_code

__all__ = [
    "Authenticator",
    "AuthState",
    "LoopbackCallbackServer",
    "OneShot",
    "TokenCache",
    "receive_code",
]
