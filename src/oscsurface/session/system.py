"""Handlers for the serialosc ``/sys/*`` configuration messages."""

import logging
from typing import TYPE_CHECKING, Any

from oscsurface.devices.protocols import ClientAddress
from oscsurface.devices.surface import VirtualSurface
from oscsurface.osc import addresses
from oscsurface.osc.addresses import int_args

if TYPE_CHECKING:
    from .manager import SessionManager

logger = logging.getLogger(__name__)


class SystemHandler:
    """
    Applies ``/sys/info``, ``/sys/prefix``, ``/sys/rotation``, ``/sys/host``
    and ``/sys/port`` to every device the sender holds.

    A client with both a surface and a ring device gets the same prefix and
    destination on both; their message suffixes never overlap. Rotation only
    applies to surfaces. ``/sys/prefix`` from a client without a device
    changes the global prefix instead.
    """

    def __init__(self, sessions: "SessionManager"):
        self.sessions = sessions
        self._handlers = {
            addresses.SYS_INFO: self._info,
            addresses.SYS_PREFIX: self._prefix,
            addresses.SYS_ROTATION: self._rotation,
            addresses.SYS_HOST: self._host,
            addresses.SYS_PORT: self._port,
        }

    def handle_message(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> bool:
        handler = self._handlers.get(path)
        if handler is None:
            return False
        handler(client, path, args)
        return True

    def _info(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> None:
        devices = self.sessions.devices_for(client)
        if not devices:
            return
        if len(args) >= 2:
            (port,) = int_args(path, args[1:2], 1)
            target = ClientAddress(str(args[0]), port)
        elif len(args) == 1:
            (port,) = int_args(path, args, 1)
            target = ClientAddress("localhost", port)
        else:
            target = client
        for device in devices:
            device.send_sys_info(target)

    def _prefix(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> None:
        if not args or not isinstance(args[0], str):
            return
        prefix = args[0] if args[0].startswith("/") else "/" + args[0]
        devices = self.sessions.devices_for(client)
        for device in devices:
            device.prefix = prefix
            logger.info(f"{device.serial}: prefix changed to {prefix}")
        if not devices:
            self.sessions.global_prefix = prefix
            logger.info(f"Global prefix changed to {prefix}")

    def _rotation(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> None:
        surfaces = [d for d in self.sessions.devices_for(client) if isinstance(d, VirtualSurface)]
        if not surfaces or not args:
            return
        (degrees,) = int_args(path, args, 1)
        rotation = degrees // 90
        if 0 <= rotation <= 3:
            for surface in surfaces:
                surface.rotation(rotation)

    def _host(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> None:
        if not args:
            return
        for device in self.sessions.devices_for(client):
            device.set_destination(host=str(args[0]))

    def _port(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> None:
        if not args:
            return
        (port,) = int_args(path, args, 1)
        for device in self.sessions.devices_for(client):
            device.set_destination(port=port)
