"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sptty.exceptions.SpttyError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ sptty device list
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the login flow did not complete
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also config and cache problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The authorization flow or token exchange failed."""

EXIT_NOT_FOUND = 4
"""The requested resource (e.g. a device) was not found."""

EXIT_API_ERROR = 5
"""The Web API answered with a non-2xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
