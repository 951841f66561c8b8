"""Device commands -- inspect and switch Spotify Connect devices.

Example::

    sptty device list
    sptty device set kitchen --play
    sptty device set 5fbb3ba6aa454b5534c4ba43a8c7e8e45a63ad0e --id
"""

from __future__ import annotations

import typer

from sptty.client import Method
from sptty.commands import common
from sptty.exceptions import NotFoundError
from sptty.models import Device, Devices, TransferPlaybackRequest
from sptty.output import print_table, success

device_app = typer.Typer(no_args_is_help=False, invoke_without_command=True)

_DEVICES_PATH = "/v1/me/player/devices"


def select_device(devices: list[Device], name: str, by_id: bool = False) -> Device:
    """Pick a device by case-insensitive name prefix, or by exact id.

    Raises:
        NotFoundError: If no device matches.
    """
    if by_id:
        match = next((d for d in devices if d.id == name), None)
    else:
        prefix = name.lower()
        match = next((d for d in devices if d.name.lower().startswith(prefix)), None)
    if match is None:
        raise NotFoundError("no match device found.")
    return match


@device_app.callback()
def device_callback(ctx: typer.Context) -> None:
    """Manage connected Spotify devices (lists them by default)."""
    if ctx.invoked_subcommand is None:
        device_list()


@device_app.command("list")
def device_list() -> None:
    """List connected devices, marking the active one."""

    async def _list() -> Devices:
        async with common.api_session() as api:
            return await api.request(_DEVICES_PATH, Method.GET, output=Devices)

    devices = common.run(_list())
    rows = [
        ["✔" if d.is_active else "", d.name, d.type, d.id]
        for d in devices.devices
    ]
    print_table(["Active", "Name", "Type", "Id"], rows, title="Devices")


@device_app.command("set")
def device_set(
    name: str = typer.Argument(help="Device name prefix (or id with --id)."),
    play: bool = typer.Option(False, "--play", "-p", help="Start playback on the device."),
    by_id: bool = typer.Option(False, "--id", "-i", help="Match NAME against device ids."),
) -> None:
    """Transfer playback to another device."""

    async def _set() -> Device:
        async with common.api_session() as api:
            devices = await api.request(_DEVICES_PATH, Method.GET, output=Devices)
            selected = select_device(devices.devices, name, by_id=by_id)
            await api.request(
                "/v1/me/player",
                Method.PUT,
                TransferPlaybackRequest(device_ids=[selected.id], play=play),
            )
            return selected

    selected = common.run(_set())
    success(f"Playing on {selected.name}." if play else f"Switched to {selected.name}.")
