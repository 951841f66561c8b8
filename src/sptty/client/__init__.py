"""HTTP client module for sptty.

Provides :class:`RestClient`, the bearer-authenticated request layer every
CLI command goes through, plus the body markers :data:`EMPTY` /
:class:`Empty` and the :class:`MaybeEmpty` output wrapper.

Example::

    from sptty.client import Method, RestClient

    async with RestClient(token, env.api_endpoint) as api:
        await api.request("/v1/me/player/next", Method.POST)
"""

from sptty.client.rest import EMPTY, Empty, MaybeEmpty, Method, RestClient, connect

__all__ = ["EMPTY", "Empty", "MaybeEmpty", "Method", "RestClient", "connect"]
