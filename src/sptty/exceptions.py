"""Exception hierarchy for sptty.

All exceptions inherit from :class:`SpttyError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`sptty.exit_codes`.
The top-level error handler in :func:`sptty.app.main` catches
``SpttyError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every error is terminal for the operation that raised it; nothing in
sptty retries.

Subclass hierarchy::

    SpttyError (exit 1)
    +-- ConfigError          (exit 1)
    +-- CacheError           (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- AuthError            (exit 3)
    |   +-- StateMismatch
    |   +-- ServerClosed
    |   +-- CallbackTimeout
    |   +-- TokenExchangeError
    +-- NotFoundError        (exit 4)
    +-- ApiError             (exit 5)
    +-- NetworkError         (exit 6)
"""

from __future__ import annotations

from typing import Optional

from sptty.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
)


class SpttyError(Exception):
    """Base exception for all sptty errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`sptty.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SpttyError):
    """Raised when the config file is missing, unreadable, or invalid."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheError(SpttyError):
    """Raised when the token cache file cannot be read, parsed, written or removed."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(SpttyError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(SpttyError):
    """Base class for failures of the authorization flow."""

    exit_code = EXIT_AUTH_FAILURE


class StateMismatch(AuthError):
    """The ``state`` echoed on the redirect does not match the one we sent.

    This indicates a forged or stale redirect and is never retried.
    """


class ServerClosed(AuthError):
    """The loopback connection ended before an authorization code arrived."""


class CallbackTimeout(AuthError):
    """No authorization code arrived before the configured deadline."""


class TokenExchangeError(AuthError):
    """The token endpoint rejected the request or returned an unusable body.

    Args:
        message: Human-readable error description.
        body: The provider's response body, verbatim.
        status_code: HTTP status of the response, if one was received.
        decode_error: ``True`` when the status was 2xx but the body was not
            a valid token record.
    """

    def __init__(
        self,
        message: str,
        body: str = "",
        status_code: Optional[int] = None,
        decode_error: bool = False,
    ) -> None:
        super().__init__(message)
        self.body = body
        self.status_code = status_code
        self.decode_error = decode_error


class NotFoundError(SpttyError):
    """Raised when a looked-up resource (e.g. a device) does not exist."""

    exit_code = EXIT_NOT_FOUND


class ApiError(SpttyError):
    """Raised when the Web API answers with a non-2xx status.

    Also raised with ``decode_error=True`` when a 2xx body does not match
    the expected output type.

    Args:
        status_code: The HTTP status code.
        body: The response body text, verbatim.
        message: Optional override for the generated message.
        decode_error: Whether the body failed to decode.
    """

    exit_code = EXIT_API_ERROR

    def __init__(
        self,
        status_code: int,
        body: str,
        message: Optional[str] = None,
        decode_error: bool = False,
    ) -> None:
        super().__init__(message or f"failed to request ({status_code}): {body}")
        self.status_code = status_code
        self.body = body
        self.decode_error = decode_error


class NetworkError(SpttyError):
    """Raised on transport failures (timeout, DNS resolution, refused connection, bind errors)."""

    exit_code = EXIT_CONNECTION_ERROR
