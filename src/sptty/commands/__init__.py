"""Built-in CLI sub-commands for sptty.

* :mod:`~sptty.commands.auth` -- ``login`` and ``token``.
* :mod:`~sptty.commands.device` -- list and switch Connect devices.
* :mod:`~sptty.commands.player` -- playback control and status.
* :mod:`~sptty.commands.common` -- presenters, API session, and error
  mapping shared by the commands.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``device``) or plain callback functions
registered directly on the root app.
"""
