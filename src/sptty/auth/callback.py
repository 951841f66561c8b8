"""One-shot loopback HTTP listener for the OAuth2 redirect.

The provider redirects the user's browser to ``redirect_uri`` with ``code``
and ``state`` query parameters. :class:`LoopbackCallbackServer` binds that
address, accepts exactly one connection, and serves HTTP/1.1 requests on it
until one of them carries a valid ``code``:

* ``code`` and ``state`` present, ``state`` matches: the code is handed off
  through a :class:`OneShot` and the browser gets ``200 OK``.
* ``code`` and ``state`` present, ``state`` differs: the attempt fails with
  :class:`~sptty.exceptions.StateMismatch`.
* anything else: ``204 No Content`` and keep waiting.

Only the request line and the headers needed to skip a body are parsed;
this is not a general purpose web server.

See Also:
    :mod:`sptty.auth.authenticator` which drives the listener.
"""

from __future__ import annotations

import asyncio
import enum
from typing import Callable, Generic, Optional, TypeVar
from urllib.parse import parse_qsl, urlsplit

from sptty.exceptions import (
    CallbackTimeout,
    ConfigError,
    NetworkError,
    ServerClosed,
    StateMismatch,
)
from sptty.output import debug

T = TypeVar("T")

_SUCCESS_BODY = b"Authorization complete. You can close this window and return to the terminal.\n"
_MISMATCH_BODY = b"Authorization failed: state mismatch.\n"
_MAX_HEADER_LINES = 100


class OneShot(Generic[T]):
    """Deliver-once handoff between producers and a single consumer.

    Producers must :meth:`claim` the handoff before they :meth:`send`; only
    the first claim succeeds and later producers are expected to treat the
    refusal as a no-op. The consumer awaits :meth:`receive`.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._claimed = False

    @property
    def claimed(self) -> bool:
        return self._claimed

    @property
    def delivered(self) -> bool:
        """Whether a value has been sent."""
        return self._future.done()

    def claim(self) -> bool:
        """Take the right to send. Returns ``False`` if already taken."""
        if self._claimed:
            return False
        self._claimed = True
        return True

    def send(self, value: T) -> None:
        if not self._future.done():
            self._future.set_result(value)

    async def receive(self) -> T:
        return await self._future


class ListenerState(str, enum.Enum):
    LISTENING = "listening"
    CLOSED = "closed"


def parse_redirect_address(redirect_uri: str) -> tuple[str, int]:
    """Return the ``(host, port)`` to bind for *redirect_uri*.

    The port defaults to 80 when the URI does not name one.

    Raises:
        ConfigError: If the URI has no host or an invalid port.
    """
    try:
        parts = urlsplit(redirect_uri)
        port = parts.port or 80
    except ValueError as exc:
        raise ConfigError(f"Invalid redirect_uri {redirect_uri!r}: {exc}") from exc
    if not parts.hostname:
        raise ConfigError(f"redirect_uri {redirect_uri!r} has no host")
    return parts.hostname, port


def _http_response(status: int, reason: str, body: bytes = b"", keep_alive: bool = True) -> bytes:
    lines = [f"HTTP/1.1 {status} {reason}"]
    if status != 204:
        lines.append("Content-Type: text/plain; charset=utf-8")
        lines.append(f"Content-Length: {len(body)}")
    if not keep_alive:
        lines.append("Connection: close")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("ascii") + body


class LoopbackCallbackServer:
    """Accept-once HTTP listener bound to the redirect URI's address.

    Create instances with :meth:`bind`, which returns a listener in the
    ``LISTENING`` state. :meth:`close` (or leaving the ``async with``
    block) moves it to ``CLOSED``.

    Example::

        server = await LoopbackCallbackServer.bind(redirect_uri, state)
        async with server:
            code = await server.receive()
    """

    def __init__(self, expected_state: str) -> None:
        self._expected_state = expected_state
        self._handoff: OneShot[str] = OneShot()
        self._accepted: asyncio.Future[
            tuple[asyncio.StreamReader, asyncio.StreamWriter]
        ] = asyncio.get_running_loop().create_future()
        self._server: Optional[asyncio.Server] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self.state = ListenerState.CLOSED

    @classmethod
    async def bind(cls, redirect_uri: str, expected_state: str) -> LoopbackCallbackServer:
        """Bind a listener on the host and port of *redirect_uri*.

        Raises:
            ConfigError: If *redirect_uri* cannot be parsed.
            NetworkError: If the address cannot be bound.
        """
        host, port = parse_redirect_address(redirect_uri)
        listener = cls(expected_state)
        try:
            listener._server = await asyncio.start_server(listener._on_connect, host, port)
        except OSError as exc:
            raise NetworkError(f"Cannot listen on {host}:{port}: {exc}") from exc
        listener.state = ListenerState.LISTENING
        debug(f"Listening for the authorization redirect on {host}:{port}")
        return listener

    async def __aenter__(self) -> LoopbackCallbackServer:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop listening and drop the served connection, if any."""
        if self.state is ListenerState.CLOSED:
            return
        self.state = ListenerState.CLOSED
        if self._writer is not None:
            self._writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def receive(self, timeout: Optional[float] = None) -> str:
        """Wait for the authorization code.

        Races serving the single connection against the code handoff; the
        first to finish decides the outcome and the other is abandoned.

        Args:
            timeout: Seconds to wait before giving up. ``None`` waits
                forever.

        Returns:
            The authorization code.

        Raises:
            StateMismatch: A redirect carried a foreign ``state``.
            ServerClosed: The connection ended without delivering a code.
            CallbackTimeout: *timeout* elapsed first.
        """
        serve_task = asyncio.ensure_future(self._serve())
        handoff_task = asyncio.ensure_future(self._handoff.receive())
        try:
            done, _ = await asyncio.wait(
                {serve_task, handoff_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if handoff_task in done:
                return handoff_task.result()
            if serve_task in done:
                serve_task.result()
                if self._handoff.delivered:
                    return await self._handoff.receive()
                raise ServerClosed("failed to serve code")
            raise CallbackTimeout(
                f"No authorization redirect received within {timeout:g} seconds"
            )
        finally:
            await _abandon(serve_task, handoff_task)

    # ------------------------------------------------------------------ #
    # Connection handling
    # ------------------------------------------------------------------ #

    def _on_connect(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if self._accepted.done() or self.state is ListenerState.CLOSED:
            writer.close()
            return
        self._writer = writer
        self._accepted.set_result((reader, writer))
        # Exactly one connection is served; stop accepting new ones.
        if self._server is not None:
            self._server.close()

    async def _serve(self) -> None:
        """Serve requests on the accepted connection until it closes."""
        reader, writer = await self._accepted
        try:
            while True:
                request = await _read_request(reader)
                if request is None:
                    return
                target, keep_alive = request
                response = self._handle(target, keep_alive)
                writer.write(response)
                await writer.drain()
                if not keep_alive:
                    return
        except (ConnectionError, asyncio.IncompleteReadError, asyncio.LimitOverrunError, ValueError):
            # ValueError: a request or header line longer than the reader limit.
            return
        except StateMismatch:
            writer.write(_http_response(400, "Bad Request", _MISMATCH_BODY, keep_alive=False))
            raise
        finally:
            writer.close()

    def _handle(self, target: str, keep_alive: bool) -> bytes:
        debug(f"Callback request: {target.split('?', 1)[0]}")
        try:
            query = dict(parse_qsl(urlsplit(target).query, keep_blank_values=True))
        except ValueError:
            query = {}

        code = query.get("code")
        state = query.get("state")
        if code is not None and state is not None and self._handoff.claim():
            if state != self._expected_state:
                raise StateMismatch("state mismatch")
            self._handoff.send(code)
            return _http_response(200, "OK", _SUCCESS_BODY, keep_alive)
        return _http_response(204, "No Content", keep_alive=keep_alive)


async def _read_request(reader: asyncio.StreamReader) -> Optional[tuple[str, bool]]:
    """Read one request, returning ``(target, keep_alive)`` or ``None`` at EOF."""
    request_line = await reader.readline()
    while request_line in (b"\r\n", b"\n"):
        request_line = await reader.readline()
    if not request_line:
        return None

    parts = request_line.decode("latin-1").strip().split()
    target = parts[1] if len(parts) >= 2 else ""
    version = parts[2].upper() if len(parts) >= 3 else "HTTP/1.0"

    content_length = 0
    connection = ""
    for _ in range(_MAX_HEADER_LINES):
        line = await reader.readline()
        if line in (b"\r\n", b"\n", b""):
            break
        name, _, value = line.decode("latin-1").partition(":")
        name = name.strip().lower()
        if name == "content-length":
            try:
                content_length = max(int(value.strip()), 0)
            except ValueError:
                content_length = 0
        elif name == "connection":
            connection = value.strip().lower()

    if content_length:
        await reader.readexactly(content_length)

    if version == "HTTP/1.1":
        keep_alive = connection != "close"
    else:
        keep_alive = connection == "keep-alive"
    return target, keep_alive


async def _abandon(*tasks: asyncio.Future) -> None:
    """Cancel unfinished *tasks* and reap their outcomes."""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def receive_code(
    redirect_uri: str,
    expected_state: str,
    *,
    on_listening: Optional[Callable[[], None]] = None,
    timeout: Optional[float] = None,
) -> str:
    """Bind the loopback listener, then wait for one authorization code.

    Args:
        redirect_uri: The configured loopback redirect URI.
        expected_state: The CSRF token sent in the authorization request.
        on_listening: Called once the socket is bound, e.g. to open the
            browser.
        timeout: Optional deadline in seconds; ``None`` waits forever.

    Returns:
        The authorization code.
    """
    server = await LoopbackCallbackServer.bind(redirect_uri, expected_state)
    async with server:
        if on_listening is not None:
            on_listening()
        return await server.receive(timeout=timeout)
