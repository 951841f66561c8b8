"""Bearer-authenticated REST client for the Spotify Web API.

:class:`RestClient` wraps :class:`httpx.AsyncClient` and turns a
``(path, method, body)`` triple into a decoded result:

- **Request bodies** -- :data:`EMPTY` is sent as zero bytes, Pydantic models
  as JSON with unset optional fields dropped, anything else through
  :func:`json.dumps`.
- **Response decoding** -- the ``output`` argument selects the mode:

  * any type or Pydantic model: the body is validated as JSON;
  * :class:`Empty`: the body is ignored and :data:`EMPTY` returned;
  * ``MaybeEmpty[T]``: a zero-length body yields ``MaybeEmpty.empty()``,
    anything else ``MaybeEmpty.of(<decoded T>)``. This separates endpoints
    answering ``204``/blank from those answering JSON.

Every request carries ``Authorization: Bearer <token>`` and an explicit
``Content-Length``. Non-2xx answers raise :class:`~sptty.exceptions.ApiError`
with the status and the body verbatim; nothing is retried.

Example::

    async with RestClient(token, "https://api.spotify.com") as api:
        devices = await api.request("/v1/me/player/devices", Method.GET, output=Devices)
"""

from __future__ import annotations

import enum
import json
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar, get_args, get_origin

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from sptty.auth import Authenticator, TokenCache
from sptty.auth.authenticator import UrlPresenter
from sptty.exceptions import ApiError, NetworkError
from sptty.models import Environment
from sptty.output import debug

T = TypeVar("T")

_TIMEOUT = 30.0


class Method(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"


class Empty:
    """Marker for "no body": encodes to zero bytes, decodes from anything."""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Empty)

    def __hash__(self) -> int:
        return hash(Empty)

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = Empty()


class MaybeEmpty(Generic[T]):
    """A decoded response body that may legitimately be blank.

    Use ``MaybeEmpty[Model]`` as the ``output`` of :meth:`RestClient.request`.
    """

    def __init__(self, value: Optional[T] = None, present: bool = False) -> None:
        self._value = value
        self._present = present

    @classmethod
    def empty(cls) -> MaybeEmpty[T]:
        return cls()

    @classmethod
    def of(cls, value: T) -> MaybeEmpty[T]:
        return cls(value, present=True)

    @property
    def is_empty(self) -> bool:
        return not self._present

    @property
    def value(self) -> T:
        """The decoded body. Raises ``ValueError`` on the empty variant."""
        if not self._present:
            raise ValueError("MaybeEmpty has no value")
        return self._value  # type: ignore[return-value]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MaybeEmpty):
            return NotImplemented
        return self._present == other._present and self._value == other._value

    def __repr__(self) -> str:
        if not self._present:
            return "MaybeEmpty.empty()"
        return f"MaybeEmpty.of({self._value!r})"


def encode_body(body: Any) -> bytes:
    """Serialise a request body to bytes."""
    if isinstance(body, Empty) or body is Empty:
        return b""
    if isinstance(body, BaseModel):
        return body.model_dump_json(exclude_none=True).encode("utf-8")
    return json.dumps(body).encode("utf-8")


def decode_body(content: bytes, output: Any) -> Any:
    """Decode a 2xx response body according to *output*.

    Raises:
        ValidationError: If the body does not match *output*.
    """
    if output is Empty:
        return EMPTY
    if output is MaybeEmpty or get_origin(output) is MaybeEmpty:
        if not content:
            return MaybeEmpty.empty()
        args = get_args(output)
        inner = args[0] if args else Any
        return MaybeEmpty.of(TypeAdapter(inner).validate_json(content))
    return TypeAdapter(output).validate_json(content)


class RestClient:
    """Asynchronous client for bearer-authenticated JSON calls.

    Must be used as an async context manager unless an already-open
    *client* is supplied.

    Args:
        token: The access token to present.
        base_url: API origin that request paths are joined onto.
        client: Optional :class:`httpx.AsyncClient` to send requests with.
            It is not closed on exit.
    """

    def __init__(
        self,
        token: str,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._token = token
        self._base_url = httpx.URL(base_url)
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RestClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=_TIMEOUT)
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def request(
        self,
        path: str,
        method: Method = Method.GET,
        body: Any = EMPTY,
        output: Any = Empty,
    ) -> Any:
        """Send one request and decode its response.

        Args:
            path: Path joined onto the base URL (e.g. ``/v1/me/player``).
            method: ``GET``, ``POST`` or ``PUT``.
            body: Request body; :data:`EMPTY` sends nothing.
            output: Decoding mode, see the module docstring.

        Returns:
            The decoded response.

        Raises:
            ApiError: On a non-2xx status, or a 2xx body that cannot be
                decoded as *output*.
            NetworkError: On transport failures.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        url = self._base_url.join(path)
        content = encode_body(body)
        debug(f"request: {method.value} {url} {content.decode('utf-8', 'replace')}")

        try:
            response = await self._client.request(
                method.value,
                url,
                content=content,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Length": str(len(content)),
                },
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        if not response.is_success:
            raise ApiError(response.status_code, response.text)

        debug(f"response: {response.status_code} {response.text}")
        try:
            return decode_body(response.content, output)
        except ValidationError as exc:
            raise ApiError(
                response.status_code,
                response.text,
                message=f"Cannot decode response from {path}: {exc}",
                decode_error=True,
            ) from exc


async def connect(
    env: Environment,
    url_presenter: UrlPresenter,
    cache_path: Path,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> RestClient:
    """Resolve a bearer token and return a client for ``env.api_endpoint``.

    The token comes from :meth:`~sptty.auth.Authenticator.get_token`, so a
    cached token is refreshed and a missing one triggers the browser flow.
    """
    authenticator = Authenticator(env.auth_config, TokenCache(cache_path), client=client)
    token = await authenticator.get_token(url_presenter)
    return RestClient(token, env.api_endpoint, client=client)
